"""
Puerto de salida: Almacenamiento del libro de caja (Ledger Store).

Define QUÉ necesita el núcleo del almacenamiento, sin decir CÓMO. En
producción es una base relacional remota; en tests, un diccionario en
memoria; localmente, SQLite.

Contrato de atomicidad:
- Cada método es atómico por sí solo. `insert_transaction` guarda la
  cabecera y sus líneas juntas; `upsert_withholding` reemplaza TODAS las
  líneas de la retención (borra e inserta) en una sola unidad.
- Las operaciones de varios pasos (legalización, cierre con bitácora)
  las coordina el núcleo con compensación; el adaptador no necesita
  exponer transacciones propias.

Errores: cualquier fallo del backend se reporta como StoreError.
"""

from abc import ABC, abstractmethod

from src.domain.models.bitacora import EntradaBitacora
from src.domain.models.caja import Caja
from src.domain.models.retencion import ItemRetencion, Retencion
from src.domain.models.transaccion import ItemTransaccion, Transaccion


class LedgerStore(ABC):
    """Interfaz del almacenamiento de cajas, transacciones y retenciones."""

    # --- Cajas ---

    @abstractmethod
    def fetch_caja(self, caja_id: int) -> Caja:
        """Lee una caja.

        Raises:
            StoreError: si la caja no existe.
        """
        ...

    @abstractmethod
    def insert_caja(self, caja: Caja) -> int:
        """Guarda una caja nueva y devuelve su id."""
        ...

    @abstractmethod
    def update_box_state(self, caja_id: int, patch: dict) -> None:
        """Actualiza estado y campos de cierre de una caja.

        Claves admitidas: estado, fecha_cierre, monto_reposicion,
        numero_cheque_reposicion, banco_reposicion.
        """
        ...

    # --- Transacciones ---

    @abstractmethod
    def fetch_transactions(self, caja_id: int) -> list[Transaccion]:
        """Todas las transacciones de la caja (incluye hijos legalizados),
        con sus líneas y su retención."""
        ...

    @abstractmethod
    def insert_transaction(self, tx: Transaccion) -> int:
        """Guarda la transacción con sus líneas. Devuelve el id asignado."""
        ...

    @abstractmethod
    def update_transaction(self, transaccion_id: int, patch: dict) -> None:
        """Actualiza campos de cabecera (fecha, numero, total, parent_id, ...)."""
        ...

    @abstractmethod
    def delete_transaction(self, transaccion_id: int) -> None:
        ...

    @abstractmethod
    def replace_line_items(self, transaccion_id: int, items: list[ItemTransaccion]) -> None:
        """Reemplaza todas las líneas de la transacción."""
        ...

    # --- Retenciones ---

    @abstractmethod
    def upsert_withholding(
        self, transaccion_id: int, header: Retencion, items: list[ItemRetencion]
    ) -> int:
        """Crea o reemplaza la retención de una transacción. Devuelve su id."""
        ...

    @abstractmethod
    def delete_withholding(self, retencion_id: int) -> None:
        ...

    @abstractmethod
    def set_withholding_collected(self, retencion_id: int, recaudada: bool) -> None:
        """Marca si el comprobante de retención ya fue recaudado."""
        ...

    # --- Bitácora y configuración ---

    @abstractmethod
    def append_audit_entry(self, entry: EntradaBitacora) -> None:
        """Agrega una entrada a la bitácora. Solo escritura."""
        ...

    @abstractmethod
    def fetch_config(self) -> dict[str, str]:
        """Tabla de configuración clave → valor."""
        ...
