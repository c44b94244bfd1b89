"""
Catálogos cerrados del dominio.

Se heredan de `str` para que el valor viaje tal cual al almacenamiento
y a la bitácora ('sin_factura', 'cerrada', ...) sin conversiones.
"""

from enum import Enum


class TipoDocumento(str, Enum):
    FACTURA = "factura"
    NOTA_VENTA = "nota_venta"
    LIQUIDACION_COMPRA = "liquidacion_compra"
    SIN_FACTURA = "sin_factura"
    DEPOSITO = "deposito"


class EstadoCaja(str, Enum):
    ABIERTA = "abierta"
    CERRADA = "cerrada"


class TipoRetencion(str, Enum):
    BIEN = "bien"
    SERVICIO = "servicio"


class EstadoArqueo(str, Enum):
    VERIFICADO = "verificado"
    SOBRANTE = "sobrante"
    FALTANTE = "faltante"
    VACIO = "vacio"
