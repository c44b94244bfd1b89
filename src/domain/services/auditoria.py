"""
Servicio de dominio: Escritura de la bitácora de auditoría.

Tras una operación ya confirmada (un gasto guardado, un depósito), la
entrada de bitácora es un registro adicional: si falla no se informa
la operación como fallida, se reporta el error al ProcessLogger.

El cierre de caja es la excepción: ahí la bitácora es parte de la misma
unidad compensada (ver CicloCaja.cerrar).
"""

from decimal import Decimal

from src.domain.exceptions import StoreError
from src.domain.models.bitacora import AccionBitacora, EntradaBitacora
from src.domain.ports.ledger_store import LedgerStore
from src.domain.ports.process_logger import ProcessLogger


def registrar_auditoria(
    store: LedgerStore,
    logger: ProcessLogger,
    accion: AccionBitacora,
    caja_id: int | None,
    detalle: dict,
) -> bool:
    """Agrega una entrada a la bitácora sin propagar fallos del almacenamiento.

    Returns:
        True si la entrada se guardó.
    """
    entrada = EntradaBitacora(accion=accion, detalle=serializar_detalle(detalle), caja_id=caja_id)
    try:
        store.append_audit_entry(entrada)
    except StoreError as e:
        logger.log_error(f"bitacora:{accion.value}", e)
        return False
    return True


def serializar_detalle(detalle: dict) -> dict:
    """Convierte Decimal a str (recursivo) para que el detalle sea JSON."""
    salida = {}
    for clave, valor in detalle.items():
        salida[clave] = _serializar(valor)
    return salida


def _serializar(valor):
    if isinstance(valor, Decimal):
        return str(valor)
    if isinstance(valor, dict):
        return serializar_detalle(valor)
    if isinstance(valor, (list, tuple)):
        return [_serializar(v) for v in valor]
    return valor
