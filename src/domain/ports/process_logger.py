"""
Puerto de salida: Bitácora de procesamiento (Process Logger).

Define los EVENTOS de negocio que el núcleo reporta mientras opera
("se abrió la caja", "el arqueo no cuadra", "se compensó una escritura").
No es la bitácora de auditoría (esa va al LedgerStore): este puerto es
para observar el proceso.

La implementación puede imprimir a consola, escribir con `logging` o
acumular en memoria para los tests; el dominio solo conoce los eventos.
"""

from abc import ABC, abstractmethod

from src.domain.models.arqueo import ResultadoArqueo
from src.domain.models.caja import Caja
from src.domain.models.transaccion import Transaccion


class ProcessLogger(ABC):
    """Interfaz para la bitácora de procesamiento."""

    # --- Ciclo de la caja ---

    @abstractmethod
    def log_caja_abierta(self, caja: Caja) -> None:
        ...

    @abstractmethod
    def log_caja_cerrada(self, caja: Caja) -> None:
        ...

    @abstractmethod
    def log_arqueo(self, caja_id: int | None, contexto: str, resultado: ResultadoArqueo) -> None:
        """Registra un arqueo y su resultado.

        Args:
            caja_id: Caja contada. None en la apertura (todavía no existe).
            contexto: 'apertura', 'cierre' o 'control'.
            resultado: Conteo verificado.
        """
        ...

    # --- Movimientos ---

    @abstractmethod
    def log_transaccion_registrada(self, caja_id: int, tx: Transaccion, accion: str) -> None:
        """accion: 'crear', 'editar', 'eliminar' o 'deposito'."""
        ...

    @abstractmethod
    def log_retencion_guardada(self, transaccion_id: int, total_retenido, accion: str) -> None:
        ...

    @abstractmethod
    def log_legalizacion(self, caja_id: int, justificacion_id: int, hijos: tuple[int, ...]) -> None:
        ...

    # --- Reglas y fallos ---

    @abstractmethod
    def log_regla_incumplida(self, caja_id: int | None, regla: str, mensaje: str) -> None:
        """Una regla de negocio rechazó una operación."""
        ...

    @abstractmethod
    def log_aviso(self, caja_id: int | None, mensaje: str) -> None:
        """Aviso no bloqueante (cierre mensual cercano, saldo bajo)."""
        ...

    @abstractmethod
    def log_compensacion(self, operacion: str, paso: str, exitosa: bool) -> None:
        """Se intentó revertir un paso de una escritura de varios pasos."""
        ...

    @abstractmethod
    def log_error(self, operacion: str, error: Exception) -> None:
        ...

    # --- Resumen ---

    @abstractmethod
    def get_summary(self) -> dict:
        """Métricas acumuladas.

        Returns:
            {
                'cajas_abiertas': int,
                'cajas_cerradas': int,
                'transacciones': int,
                'arqueos': int,
                'reglas_incumplidas': int,
                'compensaciones': int,
                'errores': List[dict],  # [{operacion, error}]
            }
        """
        ...
