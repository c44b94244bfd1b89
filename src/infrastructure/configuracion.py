"""
Carga de la configuración de la caja.

La tabla `configuracion` del almacenamiento guarda pares clave/valor
(porcentaje_reserva_caja, porcentaje_alerta_caja). Este módulo la lee
una vez al arrancar y arma la ConfiguracionCaja que se inyecta en
CicloCaja.
"""

from src.domain.models.configuracion import ConfiguracionCaja
from src.domain.ports.ledger_store import LedgerStore


def cargar_configuracion(store: LedgerStore) -> ConfiguracionCaja:
    """Configuración de la caja con los valores guardados en `store`.

    Las claves ausentes conservan el valor por defecto.

    Raises:
        StoreError: si falla la lectura.
        ValidationError: si un valor guardado no es un porcentaje válido.
    """
    return ConfiguracionCaja.from_mapping(store.fetch_config())
