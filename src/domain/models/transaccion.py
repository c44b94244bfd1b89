"""
Modelo de dominio: Transacción de caja chica.

Una Transaccion es un movimiento de dinero de la caja: un gasto con
factura, nota de venta o liquidación de compra, un gasto "sin factura"
pendiente de legalizar, o un depósito al banco.

Decisiones de diseño:
- `Decimal` para todos los montos (ver shared/money.py).
- `items` es una tupla: la transacción es inmutable y sus líneas también.
- `parent_id` es una clave foránea simple. Un solo nivel de anidamiento:
  una transacción con `parent_id` (un gasto legalizado) nunca tiene hijos
  propios. Solo el padre (la factura que justifica) cuenta en los totales.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from src.domain.exceptions import ValidationError
from src.domain.models.retencion import Retencion
from src.domain.models.tipos import TipoDocumento
from src.domain.shared.money import round_cents, tax_for, to_money

TASA_IVA = Decimal("0.15")


@dataclass(frozen=True)
class Proveedor:
    nombre: str
    ruc: str = ""
    id: int | None = None


@dataclass(frozen=True)
class ItemTransaccion:
    """Línea de una transacción: producto o servicio con su base imponible."""

    nombre: str
    monto: Decimal
    """Base, antes de impuestos."""

    con_iva: bool = False

    monto_iva: Decimal = Decimal("0")
    """monto × tasa de IVA con 4 decimales. 0 cuando con_iva es False."""

    id: int | None = None

    @classmethod
    def crear(
        cls,
        nombre: str,
        monto: Decimal,
        con_iva: bool = False,
        tasa_iva: Decimal = TASA_IVA,
        id: int | None = None,
    ) -> "ItemTransaccion":
        """Crea la línea calculando su IVA."""
        monto = to_money(monto, "item.monto")
        return cls(
            nombre=nombre,
            monto=monto,
            con_iva=con_iva,
            monto_iva=tax_for(monto, con_iva, tasa_iva),
            id=id,
        )

    @property
    def estructura(self) -> tuple[Decimal, bool]:
        """Lo que una retención congela: el monto y si lleva IVA."""
        return (self.monto, self.con_iva)

    def __post_init__(self) -> None:
        if not self.nombre or not self.nombre.strip():
            raise ValidationError("item.nombre", "el nombre del ítem es obligatorio")
        monto_iva = to_money(self.monto_iva, "item.monto_iva")
        if to_money(self.monto, "item.monto") < 0:
            raise ValidationError("item.monto", f"no puede ser negativo: {self.monto}")
        if not self.con_iva and monto_iva != 0:
            raise ValidationError(
                "item.monto_iva", "un ítem sin IVA no puede tener monto de IVA"
            )


def calcular_total(items: tuple[ItemTransaccion, ...] | list[ItemTransaccion]) -> Decimal:
    """Total de una transacción a partir de sus líneas.

    subtotal e IVA se redondean por separado a centavos y luego se suman.
    """
    subtotal = round_cents(sum((i.monto for i in items), Decimal("0")))
    iva = round_cents(sum((i.monto_iva for i in items), Decimal("0")))
    return round_cents(subtotal + iva)


@dataclass(frozen=True)
class Transaccion:
    """Movimiento de dinero de una caja."""

    fecha: date
    tipo_documento: TipoDocumento
    numero: str
    total: Decimal

    items: tuple[ItemTransaccion, ...] = field(default_factory=tuple)
    id: int | None = None
    caja_id: int | None = None
    proveedor: Proveedor | None = None

    parent_id: int | None = None
    """Id de la factura que legalizó este gasto. None en transacciones principales."""

    es_justificacion: bool = False
    """True en la factura creada por una legalización."""

    retencion: Retencion | None = None
    banco: str = ""
    """Banco destino. Solo aplica a depósitos."""

    @property
    def es_principal(self) -> bool:
        return self.parent_id is None

    @property
    def es_deposito(self) -> bool:
        return self.tipo_documento == TipoDocumento.DEPOSITO

    @property
    def pendiente_legalizar(self) -> bool:
        """Gasto sin factura que todavía no fue agrupado en una legalización."""
        return self.es_principal and self.tipo_documento == TipoDocumento.SIN_FACTURA

    @property
    def tiene_retencion_vigente(self) -> bool:
        """Una retención con monto bloquea la edición de las líneas."""
        return self.retencion is not None and self.retencion.total_retenido > 0

    @property
    def total_calculado(self) -> Decimal:
        return calcular_total(self.items)

    def __post_init__(self) -> None:
        if to_money(self.total, "total") < 0:
            raise ValidationError("total", f"no puede ser negativo: {self.total}")
        if self.es_justificacion and self.parent_id is not None:
            raise ValidationError(
                "parent_id", "una factura de justificación no puede tener padre"
            )
