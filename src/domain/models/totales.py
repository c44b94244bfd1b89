"""
Modelo de dominio: Totales de una caja.

Es una proyección: se calcula desde las transacciones cada vez que se
necesita y nunca se parchea incrementalmente.
"""

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class Totales:
    facturado: Decimal
    """Suma de totales de los gastos principales (sin depósitos ni hijos)."""

    total_retenido: Decimal
    fuente: Decimal
    iva: Decimal

    neto: Decimal
    """facturado - total_retenido. Es lo que la caja realmente gastó."""

    total_depositos: Decimal

    efectivo: Decimal
    """monto_inicial - total_depositos - neto. Lo que debería haber en la caja."""


@dataclass(frozen=True)
class AlertaSaldo:
    porcentaje_disponible: Decimal
    umbral: Decimal
    saldo_bajo: bool
