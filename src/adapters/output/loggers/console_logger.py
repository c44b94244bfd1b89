"""
Adaptador de salida: Logger a consola.

Implementación simple de ProcessLogger que imprime los eventos de la
caja a stdout con un formato consistente y un resumen final.

Útil para:
- Desarrollo y debugging.
- Ejecución manual desde terminal (CLI).

Para producción se podría implementar un FileLogger o WebhookLogger
que implemente la misma interfaz sin cambiar el dominio.
"""

from decimal import Decimal

from src.domain.models.arqueo import ResultadoArqueo
from src.domain.models.caja import Caja
from src.domain.models.transaccion import Transaccion
from src.domain.ports.process_logger import ProcessLogger
from src.domain.shared.money import format_money

ICONOS_ACCION = {
    "crear": "🧾",
    "editar": "✏️ ",
    "eliminar": "🗑️ ",
    "deposito": "🏦",
}


class ConsoleLogger(ProcessLogger):
    """Logger que imprime eventos de la caja a consola."""

    def __init__(self) -> None:
        self._cajas_abiertas: int = 0
        self._cajas_cerradas: int = 0
        self._transacciones: int = 0
        self._arqueos: int = 0
        self._reglas_incumplidas: int = 0
        self._compensaciones: int = 0
        self._errores: list[dict] = []

    # --- Ciclo de la caja ---

    def log_caja_abierta(self, caja: Caja) -> None:
        self._cajas_abiertas += 1
        print(
            f"  📂 Caja {caja.id} abierta: {caja.sucursal} — {caja.responsable} "
            f"({format_money(caja.monto_inicial)})"
        )

    def log_caja_cerrada(self, caja: Caja) -> None:
        self._cajas_cerradas += 1
        reposicion = format_money(caja.monto_reposicion or Decimal("0"))
        print(
            f"  🔒 Caja {caja.id} cerrada el {caja.fecha_cierre} — reposición {reposicion} "
            f"(cheque {caja.numero_cheque_reposicion}, {caja.banco_reposicion})"
        )

    def log_arqueo(self, caja_id: int | None, contexto: str, resultado: ResultadoArqueo) -> None:
        self._arqueos += 1
        caja = f"caja {caja_id}" if caja_id is not None else "caja nueva"
        icono = "✅" if resultado.coincide else "⚠️ "
        print(
            f"  {icono} Arqueo de {contexto} ({caja}): contado {format_money(resultado.total_contado)}, "
            f"esperado {format_money(resultado.monto_esperado)} — {resultado.estado.value}"
        )

    # --- Movimientos ---

    def log_transaccion_registrada(self, caja_id: int, tx: Transaccion, accion: str) -> None:
        self._transacciones += 1
        icono = ICONOS_ACCION.get(accion, "•")
        print(
            f"  {icono} {accion.capitalize()}: {tx.tipo_documento.value} {tx.numero} "
            f"por {format_money(tx.total)} (caja {caja_id})"
        )

    def log_retencion_guardada(self, transaccion_id: int, total_retenido, accion: str) -> None:
        print(
            f"  🧮 Retención ({accion}) de la transacción {transaccion_id}: "
            f"{format_money(total_retenido)}"
        )

    def log_legalizacion(self, caja_id: int, justificacion_id: int, hijos: tuple[int, ...]) -> None:
        print(
            f"  📑 Legalización en caja {caja_id}: factura {justificacion_id} "
            f"justifica {len(hijos)} gasto(s) {list(hijos)}"
        )

    # --- Reglas y fallos ---

    def log_regla_incumplida(self, caja_id: int | None, regla: str, mensaje: str) -> None:
        self._reglas_incumplidas += 1
        print(f"  ⛔ Regla '{regla}' (caja {caja_id}): {mensaje}")

    def log_aviso(self, caja_id: int | None, mensaje: str) -> None:
        print(f"  ⚠️  Caja {caja_id}: {mensaje}")

    def log_compensacion(self, operacion: str, paso: str, exitosa: bool) -> None:
        self._compensaciones += 1
        estado = "revertido" if exitosa else "NO se pudo revertir"
        print(f"  ↩️  {operacion}: paso '{paso}' {estado}")

    def log_error(self, operacion: str, error: Exception) -> None:
        self._errores.append({"operacion": operacion, "error": str(error)})
        print(f"  ❌ Error en {operacion} — {error}")

    # --- Resumen ---

    def get_summary(self) -> dict:
        return {
            "cajas_abiertas": self._cajas_abiertas,
            "cajas_cerradas": self._cajas_cerradas,
            "transacciones": self._transacciones,
            "arqueos": self._arqueos,
            "reglas_incumplidas": self._reglas_incumplidas,
            "compensaciones": self._compensaciones,
            "errores": self._errores,
        }

    def print_summary(self) -> None:
        """Imprime el resumen final de la sesión."""
        print("\n" + "=" * 60)
        print("RESUMEN DE OPERACIONES")
        print("=" * 60)
        print(f"  Cajas abiertas:       {self._cajas_abiertas}")
        print(f"  Cajas cerradas:       {self._cajas_cerradas}")
        print(f"  Movimientos:          {self._transacciones}")
        print(f"  Arqueos:              {self._arqueos}")
        print(f"  Reglas incumplidas:   {self._reglas_incumplidas}")
        print(f"  Compensaciones:       {self._compensaciones}")
        print(f"  Errores:              {len(self._errores)}")

        if self._errores:
            print("\n  ERRORES:")
            for err in self._errores:
                print(f"    - {err['operacion']}: {err['error']}")

        print("=" * 60)
