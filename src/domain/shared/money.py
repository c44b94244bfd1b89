"""
Aritmética monetaria de precisión fija.

CONTEXTO DEL PROBLEMA:
El cierre de caja exige que el arqueo físico sea IGUAL al efectivo
esperado, al centavo. Con `float` esa igualdad no es confiable:
    0.1 + 0.2 = 0.30000000000000004
y una caja que cuadra podría rechazarse (o peor, una que no cuadra
podría aceptarse con una tolerancia).

SOLUCIÓN:
- Todo monto es `Decimal` desde la frontera (to_money).
- Redondeo explícito ROUND_HALF_UP a centavos (round_cents).
- Los porcentajes se aplican con 4 decimales por línea ANTES de sumar
  (apply_percentage). Sumar productos sin redondear da totales distintos
  a sumar productos pre-redondeados; el sistema siempre redondea cada
  línea a 4 decimales y luego el total a 2.
"""

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from src.domain.exceptions import ValidationError

CENTAVO = Decimal("0.01")
CERO = Decimal("0")


def to_money(value, campo: str = "monto") -> Decimal:
    """Convierte un valor de entrada a Decimal, rechazando lo inválido.

    Acepta int, str, float y Decimal. Los float se convierten vía str()
    para no arrastrar su representación binaria:
        Decimal(0.1)      → 0.1000000000000000055511151231257827...
        Decimal(str(0.1)) → 0.1

    Raises:
        ValidationError: si el valor es None, bool, NaN, infinito o no
                         numérico.

    Ejemplos:
        >>> to_money("12.50")
        Decimal('12.50')
        >>> to_money(0.1)
        Decimal('0.1')
    """
    if value is None:
        raise ValidationError(campo, "el monto es obligatorio")
    # bool es subclase de int: True no es un monto
    if isinstance(value, bool):
        raise ValidationError(campo, f"se esperaba un número, se recibió {value!r}")

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise ValidationError(campo, f"valor numérico no válido: {value}")
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise ValidationError(campo, f"no es un número: '{value}'")
    else:
        raise ValidationError(campo, f"tipo no soportado: {type(value).__name__}")

    if not result.is_finite():
        raise ValidationError(campo, f"valor numérico no válido: {value}")
    return result


def round_cents(amount: Decimal) -> Decimal:
    """Redondea a 2 decimales, mitad hacia arriba.

    Ejemplos:
        >>> round_cents(Decimal("1.005"))
        Decimal('1.01')
        >>> round_cents(Decimal("-0.125"))
        Decimal('-0.13')
    """
    return amount.quantize(CENTAVO, rounding=ROUND_HALF_UP)


def apply_percentage(base: Decimal, pct: Decimal, precision: int = 4) -> Decimal:
    """Aplica un porcentaje (0-100) a una base y redondea a `precision` decimales.

    Ejemplos:
        >>> apply_percentage(Decimal("100"), Decimal("1"))
        Decimal('1.0000')
        >>> apply_percentage(Decimal("15.00"), Decimal("30"))
        Decimal('4.5000')
    """
    quantum = Decimal(1).scaleb(-precision)
    return (base * pct / Decimal(100)).quantize(quantum, rounding=ROUND_HALF_UP)


def tax_for(monto: Decimal, con_iva: bool, tasa: Decimal) -> Decimal:
    """IVA de una línea: monto × tasa con 4 decimales, o 0 si no aplica."""
    if not con_iva:
        return Decimal("0.0000")
    return (monto * tasa).quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP)


def parse_money(text: str, campo: str = "monto") -> Decimal:
    """Convierte un texto con formato monetario a Decimal.

    Maneja los formatos que llegan de formularios y de la tabla de
    configuración: "$1,234.56", "1234.56", " 1,234.56 ", "-12.00".

    Raises:
        ValidationError: si el texto está vacío o no es un monto.
    """
    if not isinstance(text, str):
        raise ValidationError(campo, f"se esperaba texto, se recibió {type(text).__name__}")
    if not text.strip():
        raise ValidationError(campo, "el texto del monto está vacío")

    cleaned = text.strip().replace("$", "").replace(" ", "").replace(",", "")
    if not cleaned or cleaned == "-":
        raise ValidationError(campo, f"no se pudo extraer un monto de '{text}'")

    return to_money(cleaned, campo)


def format_money(amount: Decimal) -> str:
    """Formatea un Decimal como string monetario legible.

    Ejemplos:
        >>> format_money(Decimal("1234567.89"))
        '$1,234,567.89'
        >>> format_money(Decimal("-0.01"))
        '-$0.01'
    """
    amount = round_cents(amount)
    if amount < 0:
        return f"-${abs(amount):,.2f}"
    return f"${amount:,.2f}"
