"""
Servicio de dominio: Legalización de gastos (LegalizationGrouping).

Los gastos "sin factura" se registran en el momento y luego se
justifican en lote: el proveedor emite UNA factura que cubre varios de
ellos. Legalizar es:

1. Crear la factura de justificación (es_justificacion=True) con el
   total de los gastos y una copia de todas sus líneas.
2. Marcar cada gasto con parent_id = id de la factura.

Después de legalizar, los totales de la caja no cambian: la factura
reemplaza a sus hijos en el cálculo (solo cuentan las principales).

`legalize` es puro y solo arma el plan; `ejecutar_plan` lo escribe
paso a paso con compensación.
"""

from collections.abc import Sequence
from dataclasses import replace

from src.domain.exceptions import ValidationError
from src.domain.models.bitacora import AccionBitacora
from src.domain.models.legalizacion import DatosFactura, PlanLegalizacion
from src.domain.models.tipos import TipoDocumento
from src.domain.models.transaccion import ItemTransaccion, Transaccion
from src.domain.ports.ledger_store import LedgerStore
from src.domain.ports.process_logger import ProcessLogger
from src.domain.services.auditoria import registrar_auditoria
from src.domain.services.compensacion import EscrituraCompensada
from src.domain.shared.money import CERO, round_cents


def legalize(
    caja_id: int,
    transacciones: Sequence[Transaccion],
    ids: Sequence[int],
    datos: DatosFactura,
) -> PlanLegalizacion:
    """Arma el plan de legalización de un grupo de gastos sin factura.

    Args:
        caja_id: Caja a la que pertenecen los gastos.
        transacciones: Transacciones actuales de la caja.
        ids: Gastos a legalizar (al menos uno).
        datos: Proveedor, número y fecha de la factura.

    Raises:
        ValidationError: lista vacía o con repetidos, id inexistente o de
                         otra caja, gasto que no es sin factura, que ya
                         fue legalizado o que tiene retención.
    """
    if not ids:
        raise ValidationError("ids", "seleccione al menos un gasto para legalizar")
    if len(set(ids)) != len(ids):
        raise ValidationError("ids", "hay gastos repetidos en la selección")

    por_id = {t.id: t for t in transacciones}
    seleccion: list[Transaccion] = []
    for tx_id in ids:
        tx = por_id.get(tx_id)
        if tx is None:
            raise ValidationError("ids", f"la transacción {tx_id} no existe en la caja {caja_id}")
        if tx.caja_id is not None and tx.caja_id != caja_id:
            raise ValidationError("ids", f"la transacción {tx_id} pertenece a otra caja")
        if tx.tipo_documento != TipoDocumento.SIN_FACTURA:
            raise ValidationError(
                "ids", f"la transacción {tx_id} no es un gasto sin factura ({tx.tipo_documento.value})"
            )
        if tx.parent_id is not None:
            raise ValidationError(
                "ids", f"la transacción {tx_id} ya fue legalizada por la factura {tx.parent_id}"
            )
        if tx.retencion is not None:
            raise ValidationError(
                "ids",
                f"la transacción {tx_id} tiene la retención {tx.retencion.numero}; elimínela antes de legalizar",
            )
        seleccion.append(tx)

    lineas = tuple(
        ItemTransaccion(
            nombre=item.nombre,
            monto=item.monto,
            con_iva=item.con_iva,
            monto_iva=item.monto_iva,
        )
        for tx in seleccion
        for item in tx.items
    )

    justificacion = Transaccion(
        fecha=datos.fecha,
        tipo_documento=TipoDocumento.FACTURA,
        numero=datos.numero.strip(),
        total=round_cents(sum((tx.total for tx in seleccion), CERO)),
        items=lineas,
        caja_id=caja_id,
        proveedor=datos.proveedor,
        es_justificacion=True,
    )
    return PlanLegalizacion(caja_id=caja_id, justificacion=justificacion, hijos=tuple(ids))


def ejecutar_plan(plan: PlanLegalizacion, store: LedgerStore, logger: ProcessLogger) -> Transaccion:
    """Escribe un plan de legalización con compensación.

    Pasos:
        1. insertar la cabecera de la factura;
        2. copiar las líneas;
        3. enlazar cada gasto hijo (parent_id).

    Returns:
        La factura de justificación guardada, con id.

    Raises:
        ConsistencyError: algún paso falló y lo aplicado se revirtió.
        ManualInterventionError: la reversión también falló.
    """
    escritura = EscrituraCompensada("legalizacion", logger)
    cabecera = replace(plan.justificacion, items=())

    factura_id = escritura.paso(
        "insertar_factura",
        lambda: store.insert_transaction(cabecera),
        lambda tx_id: store.delete_transaction(tx_id),
    )
    escritura.paso(
        "copiar_lineas",
        lambda: store.replace_line_items(factura_id, list(plan.justificacion.items)),
        lambda _: store.replace_line_items(factura_id, []),
    )
    for hijo_id in plan.hijos:
        escritura.paso(
            f"enlazar_gasto_{hijo_id}",
            lambda hijo_id=hijo_id: store.update_transaction(hijo_id, {"parent_id": factura_id}),
            lambda _, hijo_id=hijo_id: store.update_transaction(hijo_id, {"parent_id": None}),
        )

    factura = replace(plan.justificacion, id=factura_id)
    logger.log_legalizacion(plan.caja_id, factura_id, plan.hijos)
    registrar_auditoria(
        store,
        logger,
        AccionBitacora.LEGALIZACION_GASTOS,
        plan.caja_id,
        {
            "factura_id": factura_id,
            "numero_factura": factura.numero,
            "proveedor": factura.proveedor.nombre if factura.proveedor else None,
            "total": factura.total,
            "gastos": list(plan.hijos),
        },
    )
    return factura
