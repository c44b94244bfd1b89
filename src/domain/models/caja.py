"""
Modelo de dominio: Caja chica.

La Caja es la raíz del agregado. Guarda lo que no se puede derivar
(monto inicial, responsable, datos de cierre); lo derivable (gastos
netos, efectivo esperado) se recalcula siempre desde las transacciones
con TransactionLedger, nunca se almacena.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from src.domain.exceptions import ValidationError
from src.domain.models.tipos import EstadoCaja
from src.domain.shared.money import to_money


@dataclass(frozen=True)
class Caja:
    """Caja chica con su fondo inicial y, una vez cerrada, su reposición."""

    fecha_apertura: date
    monto_inicial: Decimal
    """saldo_anterior + reposicion_inicial."""

    responsable: str
    sucursal: str
    estado: EstadoCaja = EstadoCaja.ABIERTA
    id: int | None = None

    saldo_anterior: Decimal = Decimal("0")
    reposicion_inicial: Decimal = Decimal("0")

    # --- Solo con la caja cerrada ---

    fecha_cierre: date | None = None
    monto_reposicion: Decimal | None = None
    """Gastos netos al momento del cierre. Es el valor del cheque de reposición."""

    numero_cheque_reposicion: str = ""
    banco_reposicion: str = ""

    @property
    def esta_abierta(self) -> bool:
        return self.estado == EstadoCaja.ABIERTA

    def __post_init__(self) -> None:
        if to_money(self.monto_inicial, "monto_inicial") < 0:
            raise ValidationError("monto_inicial", f"no puede ser negativo: {self.monto_inicial}")
        if self.estado == EstadoCaja.CERRADA and self.fecha_cierre is None:
            raise ValidationError("fecha_cierre", "una caja cerrada necesita fecha de cierre")


@dataclass(frozen=True)
class DatosApertura:
    """Datos del formulario de apertura."""

    fecha_apertura: date
    responsable: str
    sucursal: str
    saldo_anterior: Decimal = Decimal("0")
    reposicion: Decimal = Decimal("0")

    @property
    def monto_inicial(self) -> Decimal:
        return self.saldo_anterior + self.reposicion

    def __post_init__(self) -> None:
        if len(self.responsable.strip()) < 2:
            raise ValidationError("responsable", "el responsable es obligatorio")
        if not self.sucursal.strip():
            raise ValidationError("sucursal", "debe indicar la sucursal")
        saldo_anterior = to_money(self.saldo_anterior, "saldo_anterior")
        reposicion = to_money(self.reposicion, "reposicion")
        if saldo_anterior < 0 or reposicion < 0:
            raise ValidationError("monto_inicial", "saldo anterior y reposición no pueden ser negativos")


@dataclass(frozen=True)
class DatosReposicion:
    """Cheque de reposición que se emite al cerrar."""

    fecha_cierre: date
    numero_cheque: str
    banco: str

    def __post_init__(self) -> None:
        if not self.numero_cheque.strip():
            raise ValidationError("numero_cheque", "requerido para el cierre")
        if not self.banco.strip():
            raise ValidationError("banco", "requerido para el cierre")


@dataclass(frozen=True)
class DatosDeposito:
    fecha: date
    monto: Decimal
    banco: str

    def __post_init__(self) -> None:
        if to_money(self.monto, "monto") <= 0:
            raise ValidationError("monto", "el monto del depósito debe ser mayor a 0")
        if not self.banco.strip():
            raise ValidationError("banco", "debe seleccionar un banco de destino")
