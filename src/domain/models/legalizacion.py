"""
Modelo de dominio: Plan de legalización.

Legalizar es agrupar N gastos "sin factura" bajo una factura formal que
los justifica. El núcleo no escribe directamente: produce un
PlanLegalizacion que luego se ejecuta contra el almacenamiento con
compensación (ver services/legalizacion.py).
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from src.domain.exceptions import ValidationError
from src.domain.models.transaccion import Proveedor, Transaccion


@dataclass(frozen=True)
class DatosFactura:
    """Factura que el proveedor emitió para justificar los gastos."""

    proveedor: Proveedor
    numero: str
    fecha: date

    def __post_init__(self) -> None:
        if not self.numero.strip():
            raise ValidationError("numero_factura", "el número de factura es obligatorio")
        if not self.proveedor.nombre.strip():
            raise ValidationError("proveedor", "el proveedor es obligatorio")


@dataclass(frozen=True)
class PlanLegalizacion:
    caja_id: int
    justificacion: Transaccion
    """Factura nueva (sin id todavía) con todas las líneas copiadas."""

    hijos: tuple[int, ...]
    """Ids de los gastos sin factura que quedarán con parent_id."""

    @property
    def total(self) -> Decimal:
        return self.justificacion.total
