"""
Modelo de dominio: Entrada de bitácora (auditoría).

La bitácora es de solo escritura para el núcleo: cada operación que
cambia dinero o estado deja una entrada con el detalle de las cifras.
Ningún componente del núcleo la lee.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class AccionBitacora(str, Enum):
    APERTURA_CAJA = "APERTURA_CAJA"
    CIERRE_CAJA = "CIERRE_CAJA"
    ARQUEO_CONTROL = "ARQUEO_CONTROL"
    CREAR_GASTO = "CREAR_GASTO"
    EDITAR_GASTO = "EDITAR_GASTO"
    ELIMINAR_GASTO = "ELIMINAR_GASTO"
    REGISTRAR_DEPOSITO = "REGISTRAR_DEPOSITO"
    CREAR_RETENCION = "CREAR_RETENCION"
    EDITAR_RETENCION = "EDITAR_RETENCION"
    ELIMINAR_RETENCION = "ELIMINAR_RETENCION"
    RETENCION_RECAUDADA = "RETENCION_RECAUDADA"
    LEGALIZACION_GASTOS = "LEGALIZACION_GASTOS"


@dataclass(frozen=True)
class EntradaBitacora:
    accion: AccionBitacora
    detalle: dict
    """Cifras y referencias de la operación. Los montos van como str."""

    caja_id: int | None = None
    fecha: datetime = field(default_factory=datetime.now)
    usuario: str | None = None
