"""
Servicio de dominio: Escritura compensada de varios pasos.

El almacenamiento no ofrece transacciones que abarquen varias llamadas.
Una operación como la legalización (insertar factura, copiar líneas,
enlazar hijos) se arma como una secuencia de pasos, cada uno con su
deshacer. Si un paso falla se deshacen los anteriores en orden inverso.

Uso:
    escritura = EscrituraCompensada("legalizacion", logger)
    tx_id = escritura.paso(
        "insertar_factura",
        lambda: store.insert_transaction(factura),
        lambda tx_id: store.delete_transaction(tx_id),
    )
    escritura.paso("copiar_lineas", ...)

Resultado ante un fallo:
- Todos los pasos previos se deshicieron → ConsistencyError.
- Algún deshacer también falló → ManualInterventionError con la lista
  de pasos que quedaron aplicados.
"""

from collections.abc import Callable
from typing import Any

from src.domain.exceptions import ConsistencyError, ManualInterventionError
from src.domain.ports.process_logger import ProcessLogger


class EscrituraCompensada:
    """Ejecuta pasos de escritura y recuerda cómo deshacerlos."""

    def __init__(self, operacion: str, logger: ProcessLogger) -> None:
        self._operacion = operacion
        self._logger = logger
        self._aplicados: list[tuple[str, Callable[[Any], None] | None, Any]] = []

    @property
    def pasos_aplicados(self) -> list[str]:
        return [nombre for nombre, _, _ in self._aplicados]

    def paso(
        self,
        nombre: str,
        hacer: Callable[[], Any],
        deshacer: Callable[[Any], None] | None = None,
    ) -> Any:
        """Ejecuta un paso. Si falla, compensa lo aplicado y lanza.

        Args:
            nombre: Identificador del paso para mensajes y bitácora.
            hacer: Escritura a ejecutar. Su resultado se devuelve.
            deshacer: Recibe el resultado de `hacer` y revierte el paso.
                      None si el paso no necesita compensación.

        Raises:
            ConsistencyError: el paso falló y los anteriores se revirtieron.
            ManualInterventionError: además falló alguna reversión.
        """
        try:
            resultado = hacer()
        except Exception as e:
            raise self._compensar(nombre, e) from e
        self._aplicados.append((nombre, deshacer, resultado))
        return resultado

    def _compensar(self, paso_fallido: str, causa: Exception) -> ConsistencyError:
        pendientes: list[str] = []
        for nombre, deshacer, resultado in reversed(self._aplicados):
            if deshacer is None:
                continue
            try:
                deshacer(resultado)
            except Exception as e:
                self._logger.log_compensacion(self._operacion, nombre, exitosa=False)
                self._logger.log_error(f"{self._operacion}:deshacer:{nombre}", e)
                pendientes.append(nombre)
            else:
                self._logger.log_compensacion(self._operacion, nombre, exitosa=True)
        self._aplicados.clear()

        if pendientes:
            return ManualInterventionError(self._operacion, paso_fallido, causa, pendientes)
        return ConsistencyError(self._operacion, paso_fallido, causa)
