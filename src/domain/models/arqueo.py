"""
Modelo de dominio: Arqueo (conteo físico de efectivo por denominación).

El arqueo no se persiste como entidad propia: existe mientras dura una
apertura, un cierre o un conteo de control, y su desglose queda
registrado en la bitácora.

El catálogo distingue el billete de $1 ('1_b') de la moneda de $1
('1_m'): mismo valor, entradas distintas. Por eso la clave de cada
denominación es un string y no su valor.
"""

from dataclasses import dataclass
from decimal import Decimal

from src.domain.models.tipos import EstadoArqueo


@dataclass(frozen=True)
class Denominacion:
    clave: str
    valor: Decimal
    es_billete: bool


CATALOGO_DENOMINACIONES: tuple[Denominacion, ...] = (
    Denominacion("100", Decimal("100"), True),
    Denominacion("50", Decimal("50"), True),
    Denominacion("20", Decimal("20"), True),
    Denominacion("10", Decimal("10"), True),
    Denominacion("5", Decimal("5"), True),
    Denominacion("1_b", Decimal("1"), True),
    Denominacion("1_m", Decimal("1"), False),
    Denominacion("0.5", Decimal("0.50"), False),
    Denominacion("0.25", Decimal("0.25"), False),
    Denominacion("0.1", Decimal("0.10"), False),
    Denominacion("0.05", Decimal("0.05"), False),
    Denominacion("0.01", Decimal("0.01"), False),
)


@dataclass(frozen=True)
class ConteoDenominacion:
    """Entrada del usuario: cuántas unidades contó de una denominación."""

    clave: str
    cantidad: int


@dataclass(frozen=True)
class LineaArqueo:
    denominacion: Denominacion
    cantidad: int
    subtotal: Decimal


@dataclass(frozen=True)
class ResultadoArqueo:
    """Conteo verificado contra un monto esperado."""

    lineas: tuple[LineaArqueo, ...]
    total_contado: Decimal
    monto_esperado: Decimal
    diferencia: Decimal
    """total_contado - monto_esperado. Positivo: sobra; negativo: falta."""

    estado: EstadoArqueo

    @property
    def coincide(self) -> bool:
        return self.estado == EstadoArqueo.VERIFICADO

    def desglose(self) -> list[dict]:
        """Desglose para la bitácora, de mayor a menor denominación."""
        return [
            {
                "clave": linea.denominacion.clave,
                "denominacion": str(linea.denominacion.valor),
                "cantidad": linea.cantidad,
                "subtotal": str(linea.subtotal),
            }
            for linea in self.lineas
        ]
