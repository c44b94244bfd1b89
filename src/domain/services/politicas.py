"""
Servicio de dominio: Políticas de calendario para nuevos movimientos.

La caja se cierra a fin de mes. Desde el día de aviso se recuerda que
se acerca el cierre; desde el día límite ya no se aceptan gastos ni
depósitos nuevos en la caja abierta.
"""

from datetime import date

from src.domain.ports.politica_transacciones import EvaluacionPolitica, PoliticaTransacciones


class PoliticaCierreMensual(PoliticaTransacciones):
    """Bloquea movimientos desde `dia_limite` y avisa desde `dia_aviso`."""

    def __init__(self, dia_limite: int = 28, dia_aviso: int = 25) -> None:
        if not 1 <= dia_aviso <= dia_limite <= 31:
            raise ValueError(
                f"Se esperaba 1 <= dia_aviso ({dia_aviso}) <= dia_limite ({dia_limite}) <= 31"
            )
        self._dia_limite = dia_limite
        self._dia_aviso = dia_aviso

    def evaluar(self, fecha: date) -> EvaluacionPolitica:
        if fecha.day >= self._dia_limite:
            return EvaluacionPolitica(
                bloqueado=True,
                aviso=(
                    f"Desde el día {self._dia_limite} no se registran movimientos nuevos: "
                    f"realice el cierre de caja del mes"
                ),
            )
        if fecha.day >= self._dia_aviso:
            dias = self._dia_limite - fecha.day
            return EvaluacionPolitica(
                bloqueado=False,
                aviso=f"Faltan {dias} día(s) para el cierre mensual obligatorio de la caja",
            )
        return EvaluacionPolitica(bloqueado=False)


class PoliticaSinRestriccion(PoliticaTransacciones):
    """Acepta movimientos cualquier día."""

    def evaluar(self, fecha: date) -> EvaluacionPolitica:
        return EvaluacionPolitica(bloqueado=False)
