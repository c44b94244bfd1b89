"""
Servicio de dominio: Recaudación de comprobantes de retención.

Cada retención emitida genera un comprobante físico que hay que
recaudar. El control de recaudación muestra las retenciones de una
caja y permite marcar cada una como recaudada o pendiente.

El cambio se aplica en dos fases:
1. `aplicar` actualiza la vista local de inmediato y devuelve un
   CambioPendiente con el valor anterior.
2. `CambioPendiente.confirmar` lo escribe en el almacenamiento; si el
   almacenamiento falla, la vista vuelve al valor anterior y el error
   se propaga. `revertir` descarta el cambio sin escribir.
"""

from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal

from src.domain.exceptions import StoreError, ValidationError
from src.domain.models.bitacora import AccionBitacora
from src.domain.models.transaccion import Transaccion
from src.domain.ports.ledger_store import LedgerStore
from src.domain.ports.process_logger import ProcessLogger
from src.domain.services.auditoria import registrar_auditoria
from src.domain.shared.money import CERO, round_cents


@dataclass(frozen=True)
class VistaRetencion:
    """Fila del control de recaudación."""

    retencion_id: int
    transaccion_id: int
    numero_factura: str
    proveedor: str
    ruc: str
    numero_retencion: str
    fecha: date
    total_retenido: Decimal
    recaudada: bool = False


class CambioPendiente:
    """Cambio de recaudación aplicado a la vista y aún no confirmado."""

    def __init__(self, control: "RecaudacionRetenciones", retencion_id: int, anterior: bool, nuevo: bool):
        self._control = control
        self.retencion_id = retencion_id
        self.anterior = anterior
        self.nuevo = nuevo
        self._resuelto = False

    def confirmar(self) -> None:
        """Escribe el cambio. Si falla, restaura la vista y relanza StoreError."""
        self._marcar_resuelto()
        try:
            self._control._store.set_withholding_collected(self.retencion_id, self.nuevo)
        except StoreError as e:
            self._control._poner(self.retencion_id, self.anterior)
            self._control._logger.log_error("recaudacion", e)
            raise
        registrar_auditoria(
            self._control._store,
            self._control._logger,
            AccionBitacora.RETENCION_RECAUDADA,
            self._control.caja_id,
            {"retencion_id": self.retencion_id, "recaudada": self.nuevo},
        )

    def revertir(self) -> None:
        """Descarta el cambio y restaura la vista."""
        self._marcar_resuelto()
        self._control._poner(self.retencion_id, self.anterior)

    def _marcar_resuelto(self) -> None:
        if self._resuelto:
            raise RuntimeError(f"El cambio de la retención {self.retencion_id} ya fue resuelto")
        self._resuelto = True


class RecaudacionRetenciones:
    """Vista local de las retenciones de una caja con cambios en dos fases."""

    def __init__(
        self,
        store: LedgerStore,
        vistas: Iterable[VistaRetencion],
        logger: ProcessLogger,
        caja_id: int | None = None,
    ) -> None:
        self._store = store
        self._logger = logger
        self.caja_id = caja_id
        self._vistas: dict[int, VistaRetencion] = {v.retencion_id: v for v in vistas}

    @classmethod
    def desde_transacciones(
        cls,
        store: LedgerStore,
        transacciones: Iterable[Transaccion],
        logger: ProcessLogger,
        caja_id: int | None = None,
    ) -> "RecaudacionRetenciones":
        """Arma la vista con las transacciones que tienen retención."""
        vistas = [
            VistaRetencion(
                retencion_id=tx.retencion.id,
                transaccion_id=tx.id,
                numero_factura=tx.numero,
                proveedor=tx.proveedor.nombre if tx.proveedor else "Gasto General",
                ruc=tx.proveedor.ruc if tx.proveedor and tx.proveedor.ruc else "---",
                numero_retencion=tx.retencion.numero,
                fecha=tx.retencion.fecha,
                total_retenido=tx.retencion.total_retenido,
                recaudada=tx.retencion.recaudada,
            )
            for tx in transacciones
            if tx.retencion is not None and tx.retencion.id is not None
        ]
        return cls(store, vistas, logger, caja_id)

    @property
    def vistas(self) -> list[VistaRetencion]:
        """Retenciones de la más reciente a la más antigua."""
        return sorted(self._vistas.values(), key=lambda v: v.fecha, reverse=True)

    @property
    def total_pendiente(self) -> Decimal:
        return round_cents(sum((v.total_retenido for v in self._vistas.values() if not v.recaudada), CERO))

    @property
    def total_recaudado(self) -> Decimal:
        return round_cents(sum((v.total_retenido for v in self._vistas.values() if v.recaudada), CERO))

    def aplicar(self, retencion_id: int, valor: bool) -> CambioPendiente:
        """Aplica el cambio a la vista local y devuelve el cambio por confirmar."""
        vista = self._vistas.get(retencion_id)
        if vista is None:
            raise ValidationError("retencion_id", f"la retención {retencion_id} no está en la vista")
        anterior = vista.recaudada
        self._poner(retencion_id, valor)
        return CambioPendiente(self, retencion_id, anterior, valor)

    def _poner(self, retencion_id: int, valor: bool) -> None:
        self._vistas[retencion_id] = replace(self._vistas[retencion_id], recaudada=valor)
