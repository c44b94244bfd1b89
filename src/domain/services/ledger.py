"""
Servicio de dominio: Libro de transacciones (TransactionLedger).

Convierte el conjunto de transacciones de una caja en sus Totales.

Reglas:
1. Solo cuentan las transacciones principales (parent_id is None). Un
   gasto legalizado ya está representado por su factura padre; contarlo
   también sería doble contabilidad.
2. Los depósitos no son gastos: restan efectivo pero van aparte.
3. Se recalcula todo en cada llamada. No hay caché ni parches
   incrementales: dos usuarios pueden escribir sobre la misma caja y la
   única fuente de verdad es el conjunto guardado.
"""

from collections.abc import Iterable
from decimal import Decimal

from src.domain.models.caja import Caja
from src.domain.models.configuracion import ConfiguracionCaja
from src.domain.models.totales import AlertaSaldo, Totales
from src.domain.models.transaccion import Transaccion
from src.domain.shared.money import CERO, round_cents


def compute_totals(transacciones: Iterable[Transaccion], caja: Caja) -> Totales:
    """Calcula los totales de una caja.

    Ejemplos:
        Caja de $500 con un gasto de $100 retenido en $5.50 y un depósito
        de $50:
            facturado=100, total_retenido=5.50, neto=94.50,
            total_depositos=50, efectivo=355.50
    """
    principales = [t for t in transacciones if t.es_principal]
    depositos = [t for t in principales if t.es_deposito]
    gastos = [t for t in principales if not t.es_deposito]

    total_depositos = sum((t.total for t in depositos), CERO)
    facturado = sum((t.total for t in gastos), CERO)
    fuente = sum((t.retencion.total_fuente for t in gastos if t.retencion), CERO)
    iva = sum((t.retencion.total_iva for t in gastos if t.retencion), CERO)
    total_retenido = fuente + iva
    neto = facturado - total_retenido

    return Totales(
        facturado=round_cents(facturado),
        total_retenido=round_cents(total_retenido),
        fuente=round_cents(fuente),
        iva=round_cents(iva),
        neto=round_cents(neto),
        total_depositos=round_cents(total_depositos),
        efectivo=round_cents(caja.monto_inicial - total_depositos - neto),
    )


def pending_legalizations(transacciones: Iterable[Transaccion]) -> list[Transaccion]:
    """Gastos sin factura que todavía no se agruparon en una legalización."""
    return [t for t in transacciones if t.pendiente_legalizar]


def evaluar_alerta_saldo(totales: Totales, caja: Caja, config: ConfiguracionCaja) -> AlertaSaldo:
    """Porcentaje de efectivo que le queda a la caja y si está en saldo bajo.

    La base es el monto inicial menos lo depositado: un depósito no es
    gasto, así que no debe disparar la alerta.
    """
    base = caja.monto_inicial - totales.total_depositos
    if base > 0:
        porcentaje = round_cents(totales.efectivo / base * Decimal(100))
    else:
        porcentaje = round_cents(CERO)

    return AlertaSaldo(
        porcentaje_disponible=porcentaje,
        umbral=config.porcentaje_alerta,
        saldo_bajo=caja.esta_abierta and porcentaje <= config.porcentaje_alerta,
    )
