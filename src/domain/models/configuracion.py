"""
Modelo de dominio: Configuración de las reglas de caja.

La configuración se pasa explícitamente a cada punto de entrada (no hay
variables globales). Los valores por defecto son los del sistema en
producción; `from_mapping` lee la tabla clave/valor del almacenamiento.
"""

from dataclasses import dataclass
from decimal import Decimal

from src.domain.exceptions import ValidationError
from src.domain.models.arqueo import CATALOGO_DENOMINACIONES, Denominacion
from src.domain.shared.money import parse_money, to_money

CLAVE_RESERVA = "porcentaje_reserva_caja"
CLAVE_ALERTA = "porcentaje_alerta_caja"


@dataclass(frozen=True)
class ConfiguracionCaja:
    porcentaje_reserva: Decimal = Decimal("15")
    """Fracción del monto inicial que la caja debe conservar siempre."""

    porcentaje_alerta: Decimal = Decimal("15")
    """Debajo de este % de efectivo disponible se avisa saldo bajo."""

    tasa_iva: Decimal = Decimal("0.15")
    dia_limite_cierre: int = 28
    dia_aviso_cierre: int = 25
    catalogo: tuple[Denominacion, ...] = CATALOGO_DENOMINACIONES

    def __post_init__(self) -> None:
        for campo in ("porcentaje_reserva", "porcentaje_alerta"):
            valor = to_money(getattr(self, campo), campo)
            if not Decimal("0") <= valor <= Decimal("100"):
                raise ValidationError(campo, f"debe estar entre 0 y 100, se recibió {valor}")
        if not 1 <= self.dia_aviso_cierre <= self.dia_limite_cierre <= 31:
            raise ValidationError(
                "dia_limite_cierre",
                f"se esperaba 1 <= aviso ({self.dia_aviso_cierre}) <= "
                f"límite ({self.dia_limite_cierre}) <= 31",
            )

    @classmethod
    def from_mapping(cls, valores: dict[str, str]) -> "ConfiguracionCaja":
        """Construye la configuración desde la tabla `configuracion` (clave → valor).

        Las claves ausentes conservan el valor por defecto.

        Ejemplos:
            >>> ConfiguracionCaja.from_mapping({"porcentaje_reserva_caja": "20"})
            ConfiguracionCaja(porcentaje_reserva=Decimal('20'), ...)
        """
        kwargs = {}
        if valores.get(CLAVE_RESERVA):
            kwargs["porcentaje_reserva"] = parse_money(valores[CLAVE_RESERVA], CLAVE_RESERVA)
        if valores.get(CLAVE_ALERTA):
            kwargs["porcentaje_alerta"] = parse_money(valores[CLAVE_ALERTA], CLAVE_ALERTA)
        return cls(**kwargs)
