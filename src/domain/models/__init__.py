"""
Modelos de dominio del núcleo de caja chica.

Todos los modelos son dataclasses inmutables (frozen=True) sin
dependencias externas. Los montos son siempre Decimal.

Uso:
    from src.domain.models import Caja, Transaccion, ItemTransaccion, Totales
"""

from src.domain.models.arqueo import (
    CATALOGO_DENOMINACIONES,
    ConteoDenominacion,
    Denominacion,
    LineaArqueo,
    ResultadoArqueo,
)
from src.domain.models.bitacora import AccionBitacora, EntradaBitacora
from src.domain.models.caja import Caja, DatosApertura, DatosDeposito, DatosReposicion
from src.domain.models.cierre import ResultadoCierre
from src.domain.models.configuracion import ConfiguracionCaja
from src.domain.models.legalizacion import DatosFactura, PlanLegalizacion
from src.domain.models.retencion import ItemRetencion, ResultadoRetencion, Retencion
from src.domain.models.tipos import EstadoArqueo, EstadoCaja, TipoDocumento, TipoRetencion
from src.domain.models.totales import AlertaSaldo, Totales
from src.domain.models.transaccion import (
    ItemTransaccion,
    Proveedor,
    Transaccion,
    calcular_total,
)

__all__ = [
    "CATALOGO_DENOMINACIONES",
    "AccionBitacora",
    "AlertaSaldo",
    "Caja",
    "ConfiguracionCaja",
    "ConteoDenominacion",
    "DatosApertura",
    "DatosDeposito",
    "DatosFactura",
    "DatosReposicion",
    "Denominacion",
    "EntradaBitacora",
    "EstadoArqueo",
    "EstadoCaja",
    "ItemRetencion",
    "ItemTransaccion",
    "LineaArqueo",
    "PlanLegalizacion",
    "Proveedor",
    "ResultadoArqueo",
    "ResultadoCierre",
    "ResultadoRetencion",
    "Retencion",
    "TipoDocumento",
    "TipoRetencion",
    "Totales",
    "Transaccion",
    "calcular_total",
]
