"""
Modelo de dominio: Evaluación previa al cierre de caja.
"""

from dataclasses import dataclass

from src.domain.models.arqueo import ResultadoArqueo
from src.domain.models.totales import Totales


@dataclass(frozen=True)
class ResultadoCierre:
    permitido: bool
    motivos: tuple[str, ...]
    """Explicación legible de cada bloqueo. Vacío si se permite cerrar."""

    pendientes: tuple[int, ...]
    """Ids de gastos sin factura que faltan legalizar."""

    totales: Totales
    arqueo: ResultadoArqueo | None = None
