"""
Adaptador de persistencia: Almacenamiento en memoria.

Implementa LedgerStore con diccionarios. Sirve para tests y para
ejecutar el núcleo sin base de datos.

Cada método copia lo que recibe y lo que devuelve: los modelos son
inmutables, pero los diccionarios internos no deben filtrarse.

`simular_fallo` permite provocar fallos del almacenamiento para probar
la compensación de escrituras de varios pasos:
    store.simular_fallo("update_transaction", en_llamada=2)   # falla en la 2da llamada desde ahora
"""

from dataclasses import replace
from itertools import count

from src.domain.exceptions import StoreError
from src.domain.models.bitacora import EntradaBitacora
from src.domain.models.caja import Caja
from src.domain.models.retencion import ItemRetencion, Retencion
from src.domain.models.transaccion import ItemTransaccion, Transaccion
from src.domain.ports.ledger_store import LedgerStore

CAMPOS_CABECERA = {"fecha", "tipo_documento", "numero", "total", "proveedor", "parent_id", "banco"}
CAMPOS_CAJA = {
    "estado",
    "fecha_cierre",
    "monto_reposicion",
    "numero_cheque_reposicion",
    "banco_reposicion",
}


class InMemoryLedgerStore(LedgerStore):
    """LedgerStore respaldado por diccionarios en memoria."""

    def __init__(self, config: dict[str, str] | None = None) -> None:
        self._cajas: dict[int, Caja] = {}
        self._transacciones: dict[int, Transaccion] = {}
        self._retenciones: dict[int, Retencion] = {}
        self.bitacora: list[EntradaBitacora] = []
        self._config = dict(config or {})

        self._ids_caja = count(1)
        self._ids_tx = count(1)
        self._ids_item = count(1)
        self._ids_retencion = count(1)
        self._ids_item_retencion = count(1)

        self.fallar_en: dict[str, int] = {}
        self._llamadas: dict[str, int] = {}

    # --- Cajas ---

    def fetch_caja(self, caja_id: int) -> Caja:
        self._registrar("fetch_caja")
        if caja_id not in self._cajas:
            raise StoreError("fetch_caja", f"la caja {caja_id} no existe")
        return self._cajas[caja_id]

    def insert_caja(self, caja: Caja) -> int:
        self._registrar("insert_caja")
        caja_id = next(self._ids_caja)
        self._cajas[caja_id] = replace(caja, id=caja_id)
        return caja_id

    def update_box_state(self, caja_id: int, patch: dict) -> None:
        self._registrar("update_box_state")
        caja = self.fetch_caja(caja_id)
        desconocidos = set(patch) - CAMPOS_CAJA
        if desconocidos:
            raise StoreError("update_box_state", f"campos no admitidos: {sorted(desconocidos)}")
        self._cajas[caja_id] = replace(caja, **patch)

    # --- Transacciones ---

    def fetch_transactions(self, caja_id: int) -> list[Transaccion]:
        self._registrar("fetch_transactions")
        resultado = []
        for tx in self._transacciones.values():
            if tx.caja_id != caja_id:
                continue
            retencion = next(
                (r for r in self._retenciones.values() if r.transaccion_id == tx.id), None
            )
            resultado.append(replace(tx, retencion=retencion))
        return resultado

    def insert_transaction(self, tx: Transaccion) -> int:
        self._registrar("insert_transaction")
        tx_id = next(self._ids_tx)
        self._transacciones[tx_id] = replace(
            tx, id=tx_id, items=self._con_ids(tx.items), retencion=None
        )
        return tx_id

    def update_transaction(self, transaccion_id: int, patch: dict) -> None:
        self._registrar("update_transaction")
        tx = self._transaccion(transaccion_id, "update_transaction")
        desconocidos = set(patch) - CAMPOS_CABECERA
        if desconocidos:
            raise StoreError("update_transaction", f"campos no admitidos: {sorted(desconocidos)}")
        self._transacciones[transaccion_id] = replace(tx, **patch)

    def delete_transaction(self, transaccion_id: int) -> None:
        self._registrar("delete_transaction")
        self._transaccion(transaccion_id, "delete_transaction")
        del self._transacciones[transaccion_id]
        for retencion_id in [
            r.id for r in self._retenciones.values() if r.transaccion_id == transaccion_id
        ]:
            del self._retenciones[retencion_id]

    def replace_line_items(self, transaccion_id: int, items: list[ItemTransaccion]) -> None:
        self._registrar("replace_line_items")
        tx = self._transaccion(transaccion_id, "replace_line_items")
        self._transacciones[transaccion_id] = replace(tx, items=self._con_ids(items))

    # --- Retenciones ---

    def upsert_withholding(
        self, transaccion_id: int, header: Retencion, items: list[ItemRetencion]
    ) -> int:
        self._registrar("upsert_withholding")
        self._transaccion(transaccion_id, "upsert_withholding")
        existente = next(
            (r for r in self._retenciones.values() if r.transaccion_id == transaccion_id), None
        )
        retencion_id = existente.id if existente else next(self._ids_retencion)
        self._retenciones[retencion_id] = replace(
            header,
            id=retencion_id,
            transaccion_id=transaccion_id,
            items=tuple(replace(i, id=next(self._ids_item_retencion)) for i in items),
        )
        return retencion_id

    def delete_withholding(self, retencion_id: int) -> None:
        self._registrar("delete_withholding")
        if retencion_id not in self._retenciones:
            raise StoreError("delete_withholding", f"la retención {retencion_id} no existe")
        del self._retenciones[retencion_id]

    def set_withholding_collected(self, retencion_id: int, recaudada: bool) -> None:
        self._registrar("set_withholding_collected")
        if retencion_id not in self._retenciones:
            raise StoreError("set_withholding_collected", f"la retención {retencion_id} no existe")
        self._retenciones[retencion_id] = replace(
            self._retenciones[retencion_id], recaudada=recaudada
        )

    # --- Bitácora y configuración ---

    def append_audit_entry(self, entry: EntradaBitacora) -> None:
        self._registrar("append_audit_entry")
        self.bitacora.append(entry)

    def fetch_config(self) -> dict[str, str]:
        self._registrar("fetch_config")
        return dict(self._config)

    def simular_fallo(self, operacion: str, en_llamada: int = 1) -> None:
        """La llamada número `en_llamada` a `operacion`, contando desde ahora, lanza StoreError."""
        self.fallar_en[operacion] = self._llamadas.get(operacion, 0) + en_llamada

    # --- Internos ---

    def _transaccion(self, transaccion_id: int, operacion: str) -> Transaccion:
        if transaccion_id not in self._transacciones:
            raise StoreError(operacion, f"la transacción {transaccion_id} no existe")
        return self._transacciones[transaccion_id]

    def _con_ids(self, items) -> tuple[ItemTransaccion, ...]:
        """Las líneas sin id reciben uno nuevo; las que traen id lo conservan."""
        return tuple(i if i.id is not None else replace(i, id=next(self._ids_item)) for i in items)

    def _registrar(self, operacion: str) -> None:
        n = self._llamadas.get(operacion, 0) + 1
        self._llamadas[operacion] = n
        if self.fallar_en.get(operacion) == n:
            raise StoreError(operacion, "fallo simulado")
