"""
Fixtures compartidas.

- RecordingLogger: ProcessLogger que acumula los eventos en memoria
  para poder afirmar sobre ellos.
- store / ciclo / caja: una caja de $500 abierta sobre el
  almacenamiento en memoria, sin política de calendario.
- nuevo_gasto: fábrica de gastos con sus líneas e IVA calculados.
"""

from datetime import date
from decimal import Decimal

import pytest

from src.adapters.persistence.memory_store import InMemoryLedgerStore
from src.domain.models import (
    ConteoDenominacion,
    DatosApertura,
    ItemTransaccion,
    Proveedor,
    TipoDocumento,
    Transaccion,
    calcular_total,
)
from src.domain.ports.process_logger import ProcessLogger
from src.domain.services.ciclo_caja import CicloCaja
from src.domain.services.politicas import PoliticaSinRestriccion


class RecordingLogger(ProcessLogger):
    """Guarda cada evento como (nombre, datos)."""

    def __init__(self) -> None:
        self.eventos: list[tuple[str, dict]] = []

    def nombres(self) -> list[str]:
        return [nombre for nombre, _ in self.eventos]

    def de_tipo(self, nombre: str) -> list[dict]:
        return [datos for n, datos in self.eventos if n == nombre]

    def log_caja_abierta(self, caja):
        self.eventos.append(("caja_abierta", {"caja_id": caja.id}))

    def log_caja_cerrada(self, caja):
        self.eventos.append(("caja_cerrada", {"caja_id": caja.id}))

    def log_arqueo(self, caja_id, contexto, resultado):
        self.eventos.append(
            ("arqueo", {"caja_id": caja_id, "contexto": contexto, "estado": resultado.estado})
        )

    def log_transaccion_registrada(self, caja_id, tx, accion):
        self.eventos.append(("transaccion", {"caja_id": caja_id, "id": tx.id, "accion": accion}))

    def log_retencion_guardada(self, transaccion_id, total_retenido, accion):
        self.eventos.append(
            ("retencion", {"transaccion_id": transaccion_id, "total": total_retenido, "accion": accion})
        )

    def log_legalizacion(self, caja_id, justificacion_id, hijos):
        self.eventos.append(("legalizacion", {"factura_id": justificacion_id, "hijos": hijos}))

    def log_regla_incumplida(self, caja_id, regla, mensaje):
        self.eventos.append(("regla", {"regla": regla, "mensaje": mensaje}))

    def log_aviso(self, caja_id, mensaje):
        self.eventos.append(("aviso", {"mensaje": mensaje}))

    def log_compensacion(self, operacion, paso, exitosa):
        self.eventos.append(("compensacion", {"operacion": operacion, "paso": paso, "exitosa": exitosa}))

    def log_error(self, operacion, error):
        self.eventos.append(("error", {"operacion": operacion, "error": error}))

    def get_summary(self):
        return {"eventos": len(self.eventos)}


HOY = date(2024, 3, 10)


@pytest.fixture
def logger():
    return RecordingLogger()


@pytest.fixture
def store():
    return InMemoryLedgerStore()


@pytest.fixture
def ciclo(store, logger):
    return CicloCaja(store, logger, politica=PoliticaSinRestriccion(), reloj=lambda: HOY)


@pytest.fixture
def caja(ciclo):
    """Caja de $500 abierta con 5 billetes de $100."""
    return ciclo.abrir(
        DatosApertura(
            fecha_apertura=date(2024, 3, 1),
            responsable="Ana Torres",
            sucursal="Matriz",
            saldo_anterior=Decimal("500.00"),
        ),
        [ConteoDenominacion("100", 5)],
    )


@pytest.fixture
def nuevo_gasto():
    """Fábrica: nuevo_gasto(("Papel", "100", True), ("Café", "50"), tipo=...)."""

    def _crear(*lineas, tipo=TipoDocumento.FACTURA, numero="001-001-000000123", fecha=HOY, proveedor=None):
        items = tuple(
            ItemTransaccion.crear(linea[0], Decimal(linea[1]), linea[2] if len(linea) > 2 else False)
            for linea in lineas
        )
        if proveedor is None and tipo != TipoDocumento.SIN_FACTURA:
            proveedor = Proveedor(nombre="Papelería Central", ruc="0991234567001")
        return Transaccion(
            fecha=fecha,
            tipo_documento=tipo,
            numero=numero,
            total=calcular_total(items),
            items=items,
            proveedor=proveedor,
        )

    return _crear
