"""
Puerto de salida: Escritor del reporte de caja.

El núcleo produce Caja + transacciones + Totales; quien implemente este
puerto decide el formato (Excel hoy). El dominio no conoce el formato.
"""

from abc import ABC, abstractmethod
from pathlib import Path

from src.domain.models.caja import Caja
from src.domain.models.totales import Totales
from src.domain.models.transaccion import Transaccion


class ReportWriter(ABC):
    """Interfaz para escribir el reporte de una caja."""

    @abstractmethod
    def write_report(
        self,
        caja: Caja,
        transacciones: list[Transaccion],
        totales: Totales,
        output_path: Path,
    ) -> Path:
        """Escribe el reporte de una caja (en curso o cerrada).

        Returns:
            Ruta real del archivo creado.

        Raises:
            OutputError: si falla la escritura.
        """
        ...
