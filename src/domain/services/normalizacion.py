"""
Servicio de dominio: Normalización de filas del almacenamiento.

Las filas que devuelve un backend relacional llegan con formas
inconsistentes:
- una relación (proveedor, retención) puede venir como objeto, como
  lista de un elemento o como null;
- los montos pueden venir como str, float o int;
- las fechas como string ISO ('2024-03-15') o con hora;
- los nombres de columna del esquema original (numero_factura,
  fecha_factura, total_factura, numero_retencion...).

Este módulo convierte esas filas en los modelos canónicos UNA vez, en
la frontera. El resto del núcleo solo ve Transaccion y Caja.
"""

from datetime import date, datetime
from decimal import Decimal

from src.domain.exceptions import ValidationError
from src.domain.models.caja import Caja
from src.domain.models.retencion import ItemRetencion, Retencion
from src.domain.models.tipos import EstadoCaja, TipoDocumento, TipoRetencion
from src.domain.models.transaccion import ItemTransaccion, Proveedor, Transaccion
from src.domain.shared.money import to_money


def primera_relacion(valor) -> dict | None:
    """Objeto, lista de un elemento o None → dict o None."""
    if valor is None:
        return None
    if isinstance(valor, (list, tuple)):
        return valor[0] if valor else None
    return valor


def normalizar_transaccion(fila: dict) -> Transaccion:
    """Convierte una fila de `transacciones` (con relaciones) en Transaccion.

    Ejemplos:
        >>> normalizar_transaccion({
        ...     "id": 7, "caja_id": 1, "fecha_factura": "2024-03-15",
        ...     "tipo_documento": "factura", "numero_factura": "001-001-123",
        ...     "total_factura": "115.00",
        ...     "proveedor": [{"nombre": "Ferretería", "ruc": "0999"}],
        ...     "items": [{"id": 1, "nombre": "Clavos", "monto": 100,
        ...                "con_iva": True, "monto_iva": "15.0000"}],
        ...     "retencion": [],
        ... }).proveedor.nombre
        'Ferretería'
    """
    tipo = _tipo_documento(_campo(fila, "tipo_documento"))
    proveedor = primera_relacion(fila.get("proveedor"))
    retencion = primera_relacion(fila.get("retencion"))

    return Transaccion(
        id=fila.get("id"),
        caja_id=fila.get("caja_id"),
        fecha=_fecha(_campo(fila, "fecha", "fecha_factura"), "fecha"),
        tipo_documento=tipo,
        numero=str(fila.get("numero") or fila.get("numero_factura") or ""),
        total=to_money(_campo(fila, "total", "total_factura"), "total"),
        items=tuple(normalizar_item(i) for i in fila.get("items") or ()),
        proveedor=_proveedor(proveedor),
        parent_id=fila.get("parent_id"),
        es_justificacion=bool(fila.get("es_justificacion")),
        retencion=normalizar_retencion(retencion, fila.get("id")) if retencion else None,
        banco=fila.get("banco") or "",
    )


def normalizar_item(fila: dict) -> ItemTransaccion:
    con_iva = bool(fila.get("con_iva"))
    monto_iva = fila.get("monto_iva")
    return ItemTransaccion(
        id=fila.get("id"),
        nombre=str(fila.get("nombre") or ""),
        monto=to_money(_campo(fila, "monto"), "item.monto"),
        con_iva=con_iva,
        monto_iva=to_money(monto_iva, "item.monto_iva") if con_iva and monto_iva is not None else Decimal("0"),
    )


def normalizar_retencion(fila: dict, transaccion_id: int | None = None) -> Retencion:
    return Retencion(
        id=fila.get("id"),
        transaccion_id=fila.get("transaccion_id", transaccion_id),
        fecha=_fecha(_campo(fila, "fecha", "fecha_retencion"), "fecha_retencion"),
        numero=str(fila.get("numero") or fila.get("numero_retencion") or ""),
        total_fuente=to_money(fila.get("total_fuente") or 0, "total_fuente"),
        total_iva=to_money(fila.get("total_iva") or 0, "total_iva"),
        total_retenido=to_money(fila.get("total_retenido") or 0, "total_retenido"),
        items=tuple(_item_retencion(i) for i in fila.get("items") or ()),
        recaudada=bool(fila.get("recaudada")),
    )


def normalizar_caja(fila: dict) -> Caja:
    """Convierte una fila de `cajas` en Caja.

    Si la fila no trae saldo_anterior/reposicion_inicial, todo el monto
    inicial se toma como saldo anterior.
    """
    monto_inicial = to_money(_campo(fila, "monto_inicial"), "monto_inicial")
    saldo_anterior = fila.get("saldo_anterior")
    reposicion = fila.get("reposicion_inicial", fila.get("reposicion"))
    fecha_cierre = fila.get("fecha_cierre")
    monto_reposicion = fila.get("monto_reposicion")

    try:
        estado = EstadoCaja(fila.get("estado") or EstadoCaja.ABIERTA.value)
    except ValueError:
        raise ValidationError("estado", f"estado de caja desconocido: '{fila.get('estado')}'")

    return Caja(
        id=fila.get("id"),
        fecha_apertura=_fecha(_campo(fila, "fecha_apertura"), "fecha_apertura"),
        monto_inicial=monto_inicial,
        responsable=str(fila.get("responsable") or ""),
        sucursal=str(fila.get("sucursal") or ""),
        estado=estado,
        saldo_anterior=to_money(saldo_anterior, "saldo_anterior") if saldo_anterior is not None else monto_inicial,
        reposicion_inicial=to_money(reposicion, "reposicion_inicial") if reposicion is not None else Decimal("0"),
        fecha_cierre=_fecha(fecha_cierre, "fecha_cierre") if fecha_cierre else None,
        monto_reposicion=(
            to_money(monto_reposicion, "monto_reposicion") if monto_reposicion is not None else None
        ),
        numero_cheque_reposicion=fila.get("numero_cheque_reposicion") or "",
        banco_reposicion=fila.get("banco_reposicion") or "",
    )


def _item_retencion(fila: dict) -> ItemRetencion:
    try:
        tipo = TipoRetencion(fila.get("tipo") or TipoRetencion.BIEN.value)
    except ValueError:
        raise ValidationError("tipo", f"tipo de retención desconocido: '{fila.get('tipo')}'")
    return ItemRetencion(
        id=fila.get("id"),
        item_transaccion_id=_campo(fila, "item_transaccion_id", "transaccion_item_id"),
        tipo=tipo,
        porcentaje_fuente=to_money(fila.get("porcentaje_fuente") or 0, "porcentaje_fuente"),
        porcentaje_iva=to_money(fila.get("porcentaje_iva") or 0, "porcentaje_iva"),
        base_imponible=to_money(fila.get("base_imponible") or 0, "base_imponible"),
        monto_fuente=to_money(fila.get("monto_fuente") or 0, "monto_fuente"),
        monto_iva=to_money(fila.get("monto_iva") or 0, "monto_iva"),
    )


def _proveedor(fila: dict | None) -> Proveedor | None:
    if not fila or not fila.get("nombre"):
        return None
    return Proveedor(nombre=fila["nombre"], ruc=fila.get("ruc") or "", id=fila.get("id"))


def _tipo_documento(valor) -> TipoDocumento:
    try:
        return TipoDocumento(valor)
    except ValueError:
        raise ValidationError("tipo_documento", f"tipo de documento desconocido: '{valor}'")


def _campo(fila: dict, *nombres: str):
    """Primer nombre de columna presente en la fila."""
    for nombre in nombres:
        if fila.get(nombre) is not None:
            return fila[nombre]
    raise ValidationError(nombres[0], "falta en la fila del almacenamiento")


def _fecha(valor, campo: str) -> date:
    if isinstance(valor, datetime):
        return valor.date()
    if isinstance(valor, date):
        return valor
    if isinstance(valor, str):
        try:
            return date.fromisoformat(valor.strip()[:10])
        except ValueError:
            pass
    raise ValidationError(campo, f"fecha no válida: {valor!r}")
