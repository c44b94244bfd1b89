"""
Puerto: Política de calendario para nuevos movimientos.

La máquina de estados de la caja no tiene reglas de calendario
incrustadas. Antes de aceptar un gasto o depósito consulta una política
intercambiable; la de producción bloquea desde el día 28 del mes
(ver services/politicas.py).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class EvaluacionPolitica:
    bloqueado: bool
    aviso: str | None = None
    """Mensaje para el usuario. Presente al bloquear y en el periodo de aviso."""


class PoliticaTransacciones(ABC):
    @abstractmethod
    def evaluar(self, fecha: date) -> EvaluacionPolitica:
        """Evalúa si se pueden registrar movimientos nuevos en `fecha`."""
        ...
