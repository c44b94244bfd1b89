"""
Modelo de dominio: Retención de impuestos.

Una transacción tiene como máximo una Retencion. Su cabecera guarda los
totales (fuente, IVA, total retenido) y tiene un ItemRetencion por cada
línea de la transacción con los porcentajes aplicados.

Invariante: total_retenido == total_fuente + total_iva.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from src.domain.exceptions import ValidationError
from src.domain.models.tipos import TipoRetencion
from src.domain.shared.money import to_money


@dataclass(frozen=True)
class ItemRetencion:
    """Porcentajes aplicados a una línea de la transacción.

    Como entrada solo importan item_transaccion_id, tipo y porcentajes;
    los montos los completa WithholdingCalculator.
    """

    item_transaccion_id: int
    tipo: TipoRetencion = TipoRetencion.BIEN
    porcentaje_fuente: Decimal = Decimal("0")
    porcentaje_iva: Decimal = Decimal("0")
    base_imponible: Decimal = Decimal("0")
    monto_fuente: Decimal = Decimal("0")
    monto_iva: Decimal = Decimal("0")
    id: int | None = None


@dataclass(frozen=True)
class Retencion:
    """Cabecera de retención de una transacción."""

    fecha: date
    numero: str
    total_fuente: Decimal
    total_iva: Decimal
    total_retenido: Decimal
    items: tuple[ItemRetencion, ...] = field(default_factory=tuple)
    id: int | None = None
    transaccion_id: int | None = None

    recaudada: bool = False
    """Si el comprobante físico de la retención ya fue recaudado."""

    def __post_init__(self) -> None:
        fuente = to_money(self.total_fuente, "total_fuente")
        iva = to_money(self.total_iva, "total_iva")
        if to_money(self.total_retenido, "total_retenido") != fuente + iva:
            raise ValidationError(
                "total_retenido",
                f"{self.total_retenido} no es igual a fuente ({self.total_fuente}) "
                f"+ IVA ({self.total_iva})",
            )


@dataclass(frozen=True)
class ResultadoRetencion:
    """Salida pura del cálculo de retención, lista para persistir."""

    items: tuple[ItemRetencion, ...]
    total_fuente: Decimal
    total_iva: Decimal
    total_retenido: Decimal

    def como_retencion(self, fecha: date, numero: str) -> Retencion:
        return Retencion(
            fecha=fecha,
            numero=numero,
            total_fuente=self.total_fuente,
            total_iva=self.total_iva,
            total_retenido=self.total_retenido,
            items=self.items,
        )
