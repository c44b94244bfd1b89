"""
Adaptador de persistencia: Almacenamiento SQLite.

Implementa LedgerStore sobre una base SQLite local. Guarda los montos
como TEXT para conservar el Decimal exacto (un REAL los convertiría a
float) y las fechas en ISO 8601.

Cada método del puerto corre dentro de una transacción de SQLite
(`with self._conn:`), así que es atómico por sí solo: si una sentencia
falla, se revierte todo lo del método. Cualquier sqlite3.Error se
informa como StoreError.

Las filas se leen como diccionarios con los nombres de columna del
esquema original (numero_factura, fecha_factura, total_factura...) y
se convierten a modelos con services/normalizacion.py.
"""

import json
import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path

from src.domain.exceptions import StoreError
from src.domain.models.bitacora import EntradaBitacora
from src.domain.models.caja import Caja
from src.domain.models.retencion import ItemRetencion, Retencion
from src.domain.models.tipos import EstadoCaja, TipoDocumento, TipoRetencion
from src.domain.models.transaccion import ItemTransaccion, Proveedor, Transaccion
from src.domain.ports.ledger_store import LedgerStore
from src.domain.services.normalizacion import normalizar_caja, normalizar_transaccion

logger = logging.getLogger(__name__)

ESQUEMA = [
    """
    CREATE TABLE IF NOT EXISTS cajas (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        fecha_apertura TEXT NOT NULL,
        monto_inicial TEXT NOT NULL,
        saldo_anterior TEXT NOT NULL DEFAULT '0',
        reposicion_inicial TEXT NOT NULL DEFAULT '0',
        responsable TEXT NOT NULL,
        sucursal TEXT NOT NULL,
        estado TEXT NOT NULL CHECK(estado IN ({estados})),
        fecha_cierre TEXT,
        monto_reposicion TEXT,
        numero_cheque_reposicion TEXT NOT NULL DEFAULT '',
        banco_reposicion TEXT NOT NULL DEFAULT ''
    );
    """.format(estados=", ".join(f"'{e.value}'" for e in EstadoCaja)),
    """
    CREATE TABLE IF NOT EXISTS transacciones (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        caja_id INTEGER NOT NULL,
        fecha_factura TEXT NOT NULL,
        tipo_documento TEXT NOT NULL CHECK(tipo_documento IN ({tipos})),
        numero_factura TEXT NOT NULL DEFAULT '',
        total_factura TEXT NOT NULL,
        proveedor_id INTEGER,
        proveedor_nombre TEXT,
        proveedor_ruc TEXT,
        parent_id INTEGER,
        es_justificacion INTEGER NOT NULL DEFAULT 0,
        banco TEXT NOT NULL DEFAULT '',
        FOREIGN KEY (caja_id) REFERENCES cajas(id) ON DELETE CASCADE,
        FOREIGN KEY (parent_id) REFERENCES transacciones(id) ON DELETE RESTRICT
    );
    """.format(tipos=", ".join(f"'{t.value}'" for t in TipoDocumento)),
    """
    CREATE TABLE IF NOT EXISTS transaccion_items (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        transaccion_id INTEGER NOT NULL,
        nombre TEXT NOT NULL,
        monto TEXT NOT NULL,
        con_iva INTEGER NOT NULL DEFAULT 0,
        monto_iva TEXT NOT NULL DEFAULT '0',
        FOREIGN KEY (transaccion_id) REFERENCES transacciones(id) ON DELETE CASCADE
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS retenciones (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        transaccion_id INTEGER NOT NULL UNIQUE,
        fecha_retencion TEXT NOT NULL,
        numero_retencion TEXT NOT NULL,
        total_fuente TEXT NOT NULL,
        total_iva TEXT NOT NULL,
        total_retenido TEXT NOT NULL,
        recaudada INTEGER NOT NULL DEFAULT 0,
        FOREIGN KEY (transaccion_id) REFERENCES transacciones(id) ON DELETE CASCADE
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS retencion_items (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        retencion_id INTEGER NOT NULL,
        transaccion_item_id INTEGER NOT NULL,
        tipo TEXT NOT NULL CHECK(tipo IN ({tipos})),
        porcentaje_fuente TEXT NOT NULL,
        porcentaje_iva TEXT NOT NULL,
        base_imponible TEXT NOT NULL,
        monto_fuente TEXT NOT NULL,
        monto_iva TEXT NOT NULL,
        FOREIGN KEY (retencion_id) REFERENCES retenciones(id) ON DELETE CASCADE,
        FOREIGN KEY (transaccion_item_id) REFERENCES transaccion_items(id) ON DELETE CASCADE
    );
    """.format(tipos=", ".join(f"'{t.value}'" for t in TipoRetencion)),
    """
    CREATE TABLE IF NOT EXISTS bitacora (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        accion TEXT NOT NULL,
        detalle TEXT NOT NULL,
        caja_id INTEGER,
        fecha TEXT NOT NULL,
        usuario TEXT
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS configuracion (
        clave TEXT PRIMARY KEY,
        valor TEXT NOT NULL
    );
    """,
]

# Campo del modelo → columna de la tabla
COLUMNAS_CABECERA = {
    "fecha": "fecha_factura",
    "tipo_documento": "tipo_documento",
    "numero": "numero_factura",
    "total": "total_factura",
    "parent_id": "parent_id",
    "banco": "banco",
}
COLUMNAS_CAJA = {
    "estado",
    "fecha_cierre",
    "monto_reposicion",
    "numero_cheque_reposicion",
    "banco_reposicion",
}


def _valor_db(valor):
    """Convierte un valor del dominio a un tipo que SQLite guarda sin pérdida."""
    if isinstance(valor, Decimal):
        return str(valor)
    if isinstance(valor, Enum):
        return valor.value
    if isinstance(valor, bool):
        return 1 if valor else 0
    if isinstance(valor, (datetime, date)):
        return valor.isoformat()
    return valor


class SqliteLedgerStore(LedgerStore):
    """LedgerStore sobre SQLite.

    Uso:
        with SqliteLedgerStore(Path("caja.db")) as store:
            ciclo = CicloCaja(store, ConsoleLogger())
    """

    def __init__(self, db_path: Path | str = ":memory:") -> None:
        self.db_path = str(db_path)
        try:
            self._conn = sqlite3.connect(self.db_path)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON;")
        except sqlite3.Error as e:
            logger.error(f"Error connecting to database {self.db_path}: {e}")
            raise StoreError("conectar", str(e)) from e
        logger.debug(f"Database connection established to {self.db_path}")
        self.crear_tablas()

    def __enter__(self) -> "SqliteLedgerStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        self._conn.close()
        logger.debug("Database connection closed.")

    def crear_tablas(self) -> None:
        with self._operacion("crear_tablas") as conn:
            for query in ESQUEMA:
                conn.execute(query)

    # --- Cajas ---

    def fetch_caja(self, caja_id: int) -> Caja:
        with self._operacion("fetch_caja") as conn:
            fila = conn.execute("SELECT * FROM cajas WHERE id = ?", (caja_id,)).fetchone()
        if fila is None:
            raise StoreError("fetch_caja", f"la caja {caja_id} no existe")
        return normalizar_caja(dict(fila))

    def insert_caja(self, caja: Caja) -> int:
        with self._operacion("insert_caja") as conn:
            cursor = conn.execute(
                """
                INSERT INTO cajas (fecha_apertura, monto_inicial, saldo_anterior,
                    reposicion_inicial, responsable, sucursal, estado, fecha_cierre,
                    monto_reposicion, numero_cheque_reposicion, banco_reposicion)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                tuple(
                    _valor_db(v)
                    for v in (
                        caja.fecha_apertura,
                        caja.monto_inicial,
                        caja.saldo_anterior,
                        caja.reposicion_inicial,
                        caja.responsable,
                        caja.sucursal,
                        caja.estado,
                        caja.fecha_cierre,
                        caja.monto_reposicion,
                        caja.numero_cheque_reposicion,
                        caja.banco_reposicion,
                    )
                ),
            )
        logger.debug(f"Caja {cursor.lastrowid} insertada")
        return cursor.lastrowid

    def update_box_state(self, caja_id: int, patch: dict) -> None:
        desconocidos = set(patch) - COLUMNAS_CAJA
        if desconocidos:
            raise StoreError("update_box_state", f"campos no admitidos: {sorted(desconocidos)}")
        if not patch:
            return
        asignaciones = ", ".join(f"{columna} = ?" for columna in patch)
        with self._operacion("update_box_state") as conn:
            cursor = conn.execute(
                f"UPDATE cajas SET {asignaciones} WHERE id = ?",
                (*(_valor_db(v) for v in patch.values()), caja_id),
            )
        if cursor.rowcount == 0:
            raise StoreError("update_box_state", f"la caja {caja_id} no existe")

    # --- Transacciones ---

    def fetch_transactions(self, caja_id: int) -> list[Transaccion]:
        with self._operacion("fetch_transactions") as conn:
            filas = [
                dict(f)
                for f in conn.execute(
                    "SELECT * FROM transacciones WHERE caja_id = ? ORDER BY id", (caja_id,)
                )
            ]
            for fila in filas:
                fila["items"] = [
                    dict(i)
                    for i in conn.execute(
                        "SELECT * FROM transaccion_items WHERE transaccion_id = ? ORDER BY id",
                        (fila["id"],),
                    )
                ]
                fila["proveedor"] = (
                    {
                        "id": fila["proveedor_id"],
                        "nombre": fila["proveedor_nombre"],
                        "ruc": fila["proveedor_ruc"],
                    }
                    if fila["proveedor_nombre"]
                    else None
                )
                retenciones = [
                    dict(r)
                    for r in conn.execute(
                        "SELECT * FROM retenciones WHERE transaccion_id = ?", (fila["id"],)
                    )
                ]
                for retencion in retenciones:
                    retencion["items"] = [
                        dict(i)
                        for i in conn.execute(
                            "SELECT * FROM retencion_items WHERE retencion_id = ? ORDER BY id",
                            (retencion["id"],),
                        )
                    ]
                fila["retencion"] = retenciones
        return [normalizar_transaccion(fila) for fila in filas]

    def insert_transaction(self, tx: Transaccion) -> int:
        proveedor = tx.proveedor or Proveedor(nombre="")
        with self._operacion("insert_transaction") as conn:
            cursor = conn.execute(
                """
                INSERT INTO transacciones (caja_id, fecha_factura, tipo_documento,
                    numero_factura, total_factura, proveedor_id, proveedor_nombre,
                    proveedor_ruc, parent_id, es_justificacion, banco)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                tuple(
                    _valor_db(v)
                    for v in (
                        tx.caja_id,
                        tx.fecha,
                        tx.tipo_documento,
                        tx.numero,
                        tx.total,
                        proveedor.id,
                        proveedor.nombre or None,
                        proveedor.ruc or None,
                        tx.parent_id,
                        tx.es_justificacion,
                        tx.banco,
                    )
                ),
            )
            tx_id = cursor.lastrowid
            self._insertar_items(conn, tx_id, tx.items)
        logger.debug(f"Transacción {tx_id} insertada con {len(tx.items)} ítems")
        return tx_id

    def update_transaction(self, transaccion_id: int, patch: dict) -> None:
        columnas: dict[str, object] = {}
        for campo, valor in patch.items():
            if campo == "proveedor":
                columnas["proveedor_id"] = valor.id if valor else None
                columnas["proveedor_nombre"] = valor.nombre if valor else None
                columnas["proveedor_ruc"] = (valor.ruc or None) if valor else None
            elif campo in COLUMNAS_CABECERA:
                columnas[COLUMNAS_CABECERA[campo]] = _valor_db(valor)
            else:
                raise StoreError("update_transaction", f"campo no admitido: '{campo}'")
        if not columnas:
            return

        asignaciones = ", ".join(f"{columna} = ?" for columna in columnas)
        with self._operacion("update_transaction") as conn:
            cursor = conn.execute(
                f"UPDATE transacciones SET {asignaciones} WHERE id = ?",
                (*columnas.values(), transaccion_id),
            )
        if cursor.rowcount == 0:
            raise StoreError("update_transaction", f"la transacción {transaccion_id} no existe")

    def delete_transaction(self, transaccion_id: int) -> None:
        with self._operacion("delete_transaction") as conn:
            cursor = conn.execute("DELETE FROM transacciones WHERE id = ?", (transaccion_id,))
        if cursor.rowcount == 0:
            raise StoreError("delete_transaction", f"la transacción {transaccion_id} no existe")

    def replace_line_items(self, transaccion_id: int, items: list[ItemTransaccion]) -> None:
        """Deja la transacción con exactamente `items`.

        Las líneas que traen id se actualizan en su lugar (y conservan las
        referencias de la retención); las demás se insertan y las que ya
        no están se borran.
        """
        with self._operacion("replace_line_items") as conn:
            if conn.execute("SELECT 1 FROM transacciones WHERE id = ?", (transaccion_id,)).fetchone() is None:
                raise StoreError("replace_line_items", f"la transacción {transaccion_id} no existe")

            actuales = {
                fila["id"]
                for fila in conn.execute(
                    "SELECT id FROM transaccion_items WHERE transaccion_id = ?", (transaccion_id,)
                )
            }
            conservados = {i.id for i in items if i.id in actuales}
            for item_id in actuales - conservados:
                conn.execute("DELETE FROM transaccion_items WHERE id = ?", (item_id,))

            for item in items:
                if item.id in conservados:
                    conn.execute(
                        "UPDATE transaccion_items SET nombre = ?, monto = ?, con_iva = ?, monto_iva = ? "
                        "WHERE id = ?",
                        (item.nombre, str(item.monto), _valor_db(item.con_iva), str(item.monto_iva), item.id),
                    )
                else:
                    self._insertar_items(conn, transaccion_id, [item])

    # --- Retenciones ---

    def upsert_withholding(
        self, transaccion_id: int, header: Retencion, items: list[ItemRetencion]
    ) -> int:
        valores = tuple(
            _valor_db(v)
            for v in (
                header.fecha,
                header.numero,
                header.total_fuente,
                header.total_iva,
                header.total_retenido,
                header.recaudada,
            )
        )
        with self._operacion("upsert_withholding") as conn:
            fila = conn.execute(
                "SELECT id FROM retenciones WHERE transaccion_id = ?", (transaccion_id,)
            ).fetchone()
            if fila is None:
                cursor = conn.execute(
                    """
                    INSERT INTO retenciones (fecha_retencion, numero_retencion, total_fuente,
                        total_iva, total_retenido, recaudada, transaccion_id)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (*valores, transaccion_id),
                )
                retencion_id = cursor.lastrowid
            else:
                retencion_id = fila["id"]
                conn.execute(
                    """
                    UPDATE retenciones SET fecha_retencion = ?, numero_retencion = ?,
                        total_fuente = ?, total_iva = ?, total_retenido = ?, recaudada = ?
                    WHERE id = ?
                    """,
                    (*valores, retencion_id),
                )
                conn.execute("DELETE FROM retencion_items WHERE retencion_id = ?", (retencion_id,))

            conn.executemany(
                """
                INSERT INTO retencion_items (retencion_id, transaccion_item_id, tipo,
                    porcentaje_fuente, porcentaje_iva, base_imponible, monto_fuente, monto_iva)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        retencion_id,
                        i.item_transaccion_id,
                        _valor_db(i.tipo),
                        str(i.porcentaje_fuente),
                        str(i.porcentaje_iva),
                        str(i.base_imponible),
                        str(i.monto_fuente),
                        str(i.monto_iva),
                    )
                    for i in items
                ],
            )
        logger.debug(f"Retención {retencion_id} guardada para la transacción {transaccion_id}")
        return retencion_id

    def delete_withholding(self, retencion_id: int) -> None:
        with self._operacion("delete_withholding") as conn:
            cursor = conn.execute("DELETE FROM retenciones WHERE id = ?", (retencion_id,))
        if cursor.rowcount == 0:
            raise StoreError("delete_withholding", f"la retención {retencion_id} no existe")

    def set_withholding_collected(self, retencion_id: int, recaudada: bool) -> None:
        with self._operacion("set_withholding_collected") as conn:
            cursor = conn.execute(
                "UPDATE retenciones SET recaudada = ? WHERE id = ?",
                (_valor_db(recaudada), retencion_id),
            )
        if cursor.rowcount == 0:
            raise StoreError("set_withholding_collected", f"la retención {retencion_id} no existe")

    # --- Bitácora y configuración ---

    def append_audit_entry(self, entry: EntradaBitacora) -> None:
        with self._operacion("append_audit_entry") as conn:
            conn.execute(
                "INSERT INTO bitacora (accion, detalle, caja_id, fecha, usuario) VALUES (?, ?, ?, ?, ?)",
                (
                    entry.accion.value,
                    json.dumps(entry.detalle, ensure_ascii=False, default=str),
                    entry.caja_id,
                    entry.fecha.isoformat(),
                    entry.usuario,
                ),
            )

    def fetch_audit_entries(self, caja_id: int | None = None) -> list[dict]:
        """Entradas de bitácora como diccionarios (detalle ya decodificado)."""
        query = "SELECT * FROM bitacora"
        params: tuple = ()
        if caja_id is not None:
            query += " WHERE caja_id = ?"
            params = (caja_id,)
        with self._operacion("fetch_audit_entries") as conn:
            filas = [dict(f) for f in conn.execute(query + " ORDER BY id", params)]
        for fila in filas:
            fila["detalle"] = json.loads(fila["detalle"])
        return filas

    def fetch_config(self) -> dict[str, str]:
        with self._operacion("fetch_config") as conn:
            return {f["clave"]: f["valor"] for f in conn.execute("SELECT clave, valor FROM configuracion")}

    def set_config(self, clave: str, valor: str) -> None:
        with self._operacion("set_config") as conn:
            conn.execute(
                "INSERT INTO configuracion (clave, valor) VALUES (?, ?) "
                "ON CONFLICT(clave) DO UPDATE SET valor = excluded.valor",
                (clave, valor),
            )

    # --- Internos ---

    @contextmanager
    def _operacion(self, nombre: str) -> Iterator[sqlite3.Connection]:
        """Transacción de SQLite. Convierte sqlite3.Error en StoreError."""
        try:
            with self._conn:
                yield self._conn
        except sqlite3.Error as e:
            logger.error(f"Query execution failed in {nombre}: {e}")
            raise StoreError(nombre, str(e)) from e

    @staticmethod
    def _insertar_items(conn: sqlite3.Connection, transaccion_id: int, items) -> None:
        conn.executemany(
            """
            INSERT INTO transaccion_items (transaccion_id, nombre, monto, con_iva, monto_iva)
            VALUES (?, ?, ?, ?, ?)
            """,
            [
                (transaccion_id, i.nombre, str(i.monto), _valor_db(i.con_iva), str(i.monto_iva))
                for i in items
            ],
        )

