"""
Excepciones de dominio del núcleo de caja chica.

Cada tipo de error le dice al llamador qué puede hacer con él:

- ValidationError: la entrada está mal formada (denominación fuera de
  catálogo, porcentaje fuera de rango, campo obligatorio vacío). Se corrige
  localmente y nunca deja estado parcial.
- BusinessRuleError: la entrada es válida pero una regla del negocio la
  rechaza (reserva de seguridad, saldo insuficiente, arqueo que no cuadra,
  legalizaciones pendientes). El mensaje lleva las cifras involucradas
  para que el usuario pueda corregir.
- InvalidStateError: la operación no aplica al estado actual (caja cerrada,
  transacción bloqueada por una retención). No se reintenta.
- ConsistencyError: una escritura de varios pasos falló a mitad y se
  compensó. Si la compensación también falla se lanza
  ManualInterventionError.

Jerarquía:
    CajaChicaError
    ├── ValidationError
    ├── BusinessRuleError
    ├── InvalidStateError
    ├── ConsistencyError
    │   └── ManualInterventionError
    ├── StoreError
    └── OutputError
"""


class CajaChicaError(Exception):
    """Excepción base del proyecto. Todas las demás heredan de esta."""


class ValidationError(CajaChicaError):
    """Entrada mal formada.

    Ejemplos:
    - Denominación que no existe en el catálogo del arqueo.
    - Porcentaje de retención fuera de [0, 100].
    - Monto no numérico, NaN o infinito.
    """

    def __init__(self, campo: str, detalle: str):
        self.campo = campo
        self.detalle = detalle
        super().__init__(f"Dato inválido en '{campo}': {detalle}")


class BusinessRuleError(CajaChicaError):
    """Una regla del negocio rechazó la operación.

    `regla` identifica la restricción (por ejemplo 'reserva_seguridad' o
    'arqueo_cierre') y `cifras` guarda los valores comparados, para que la
    capa de presentación los muestre tal cual.
    """

    def __init__(self, regla: str, mensaje: str, cifras: dict | None = None):
        self.regla = regla
        self.mensaje = mensaje
        self.cifras = cifras or {}
        super().__init__(mensaje)


class InvalidStateError(CajaChicaError):
    """La operación no está permitida en el estado actual del recurso."""

    def __init__(self, recurso: str, estado: str, operacion: str):
        self.recurso = recurso
        self.estado = estado
        self.operacion = operacion
        super().__init__(
            f"No se puede '{operacion}' sobre {recurso}: estado actual '{estado}'"
        )


class ConsistencyError(CajaChicaError):
    """Una escritura de varios pasos falló y los pasos previos se revirtieron."""

    def __init__(self, operacion: str, paso: str, causa: Exception):
        self.operacion = operacion
        self.paso = paso
        self.causa = causa
        super().__init__(
            f"La operación '{operacion}' falló en el paso '{paso}' y fue revertida: {causa}"
        )


class ManualInterventionError(ConsistencyError):
    """La compensación de una escritura parcial también falló.

    El almacenamiento puede haber quedado inconsistente. `pasos_pendientes`
    enumera los pasos que no se pudieron revertir.
    """

    def __init__(
        self,
        operacion: str,
        paso: str,
        causa: Exception,
        pasos_pendientes: list[str],
    ):
        self.pasos_pendientes = pasos_pendientes
        super().__init__(operacion, paso, causa)
        self.args = (
            f"Se requiere intervención manual: '{operacion}' falló en '{paso}' "
            f"({causa}) y no se pudieron revertir: {', '.join(pasos_pendientes)}",
        )


class StoreError(CajaChicaError):
    """Fallo del almacenamiento externo (conexión, constraint, registro inexistente)."""

    def __init__(self, operacion: str, causa: str):
        self.operacion = operacion
        self.causa = causa
        super().__init__(f"Error del almacenamiento en '{operacion}': {causa}")


class OutputError(CajaChicaError):
    """Falla la generación de un reporte (permisos, disco lleno, formato)."""

    def __init__(self, ruta_salida: str, causa: str):
        self.ruta_salida = ruta_salida
        self.causa = causa
        super().__init__(f"Error generando salida en '{ruta_salida}': {causa}")
