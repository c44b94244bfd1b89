"""
Servicio de dominio: Cálculo de retenciones (WithholdingCalculator).

Por cada línea de la transacción el usuario indica el tipo (bien o
servicio) y dos porcentajes:
- retención en la fuente, aplicada a la base (monto) de la línea;
- retención de IVA, aplicada al IVA de la línea.

Cada monto se redondea a 4 decimales y recién la suma se lleva a
centavos. Con una línea de $100 con IVA (IVA $15), 1% fuente y 30% IVA:
    fuente = 1.0000, iva = 4.5000, total retenido = 5.50
"""

from collections.abc import Sequence
from dataclasses import replace
from decimal import Decimal

from src.domain.exceptions import InvalidStateError, ValidationError
from src.domain.models.retencion import ItemRetencion, ResultadoRetencion
from src.domain.models.tipos import TipoRetencion
from src.domain.models.transaccion import ItemTransaccion, Transaccion
from src.domain.shared.money import CERO, apply_percentage, round_cents, to_money

PORCENTAJE_MINIMO = Decimal("0")
PORCENTAJE_MAXIMO = Decimal("100")


def compute_withholding(
    items_transaccion: Sequence[ItemTransaccion],
    items_retencion: Sequence[ItemRetencion],
) -> ResultadoRetencion:
    """Calcula montos por línea y totales de una retención.

    Args:
        items_transaccion: Líneas guardadas de la transacción (con id).
        items_retencion: Un ItemRetencion por línea, con los porcentajes.

    Returns:
        ResultadoRetencion con los ítems completos (base, montos) y totales.

    Raises:
        ValidationError: ítem que no pertenece a la transacción, línea
                         repetida, porcentaje fuera de [0, 100] o tipo
                         desconocido.
    """
    lineas = {item.id: item for item in items_transaccion if item.id is not None}
    vistos: set[int] = set()
    calculados: list[ItemRetencion] = []

    for item in items_retencion:
        linea = lineas.get(item.item_transaccion_id)
        if linea is None:
            raise ValidationError(
                "item_transaccion_id",
                f"la línea {item.item_transaccion_id} no pertenece a la transacción",
            )
        if item.item_transaccion_id in vistos:
            raise ValidationError(
                "item_transaccion_id",
                f"la línea {item.item_transaccion_id} tiene más de una retención",
            )
        vistos.add(item.item_transaccion_id)

        tipo = _validar_tipo(item.tipo)
        pct_fuente = _validar_porcentaje(item.porcentaje_fuente, "porcentaje_fuente")
        pct_iva = _validar_porcentaje(item.porcentaje_iva, "porcentaje_iva")

        calculados.append(
            replace(
                item,
                tipo=tipo,
                porcentaje_fuente=pct_fuente,
                porcentaje_iva=pct_iva,
                base_imponible=linea.monto,
                monto_fuente=apply_percentage(linea.monto, pct_fuente, 4),
                monto_iva=apply_percentage(linea.monto_iva, pct_iva, 4),
            )
        )

    total_fuente = round_cents(sum((i.monto_fuente for i in calculados), CERO))
    total_iva = round_cents(sum((i.monto_iva for i in calculados), CERO))

    return ResultadoRetencion(
        items=tuple(calculados),
        total_fuente=total_fuente,
        total_iva=total_iva,
        total_retenido=round_cents(total_fuente + total_iva),
    )


def assert_items_editable(tx: Transaccion, nuevos_items: Sequence[ItemTransaccion]) -> None:
    """Bloquea cambios estructurales en las líneas de una transacción retenida.

    Mientras exista una retención con monto, cambiar montos, el indicador
    de IVA o la cantidad de líneas invalidaría los montos retenidos. Los
    nombres sí se pueden corregir.

    Raises:
        InvalidStateError: si hay retención vigente y las líneas cambian.
    """
    if not tx.tiene_retencion_vigente:
        return
    antes = [i.estructura for i in tx.items]
    despues = [i.estructura for i in nuevos_items]
    if antes != despues:
        raise InvalidStateError(
            f"transacción {tx.id}",
            "con retención",
            "modificar montos o IVA de las líneas (elimine primero la retención)",
        )


def _validar_porcentaje(valor, campo: str) -> Decimal:
    pct = to_money(valor, campo)
    if not PORCENTAJE_MINIMO <= pct <= PORCENTAJE_MAXIMO:
        raise ValidationError(campo, f"debe estar entre 0 y 100, se recibió {pct}")
    return pct


def _validar_tipo(tipo) -> TipoRetencion:
    try:
        return TipoRetencion(tipo)
    except ValueError:
        raise ValidationError("tipo", f"tipo de retención desconocido: '{tipo}'")
