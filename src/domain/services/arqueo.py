"""
Servicio de dominio: Conciliación de arqueo (DenominationReconciler).

Convierte un conteo físico (denominación × cantidad) en un total
verificado y lo compara contra un monto esperado.

La comparación es EXACTA: ambos lados se redondean a centavos con
Decimal y luego se exige diferencia == 0. No hay tolerancia: un
centavo de diferencia es un faltante o un sobrante real.

Se usa en tres lugares con la misma lógica:
- Apertura: el conteo debe igualar el monto inicial.
- Cierre: el conteo debe igualar el efectivo esperado.
- Control: solo se registra la diferencia, no bloquea nada.
"""

from collections.abc import Sequence

from src.domain.exceptions import ValidationError
from src.domain.models.arqueo import (
    CATALOGO_DENOMINACIONES,
    ConteoDenominacion,
    Denominacion,
    LineaArqueo,
    ResultadoArqueo,
)
from src.domain.models.tipos import EstadoArqueo
from src.domain.shared.money import CERO, round_cents, to_money


def reconcile_count(
    conteos: Sequence[ConteoDenominacion],
    monto_esperado,
    permitir_vacio: bool = False,
    catalogo: Sequence[Denominacion] = CATALOGO_DENOMINACIONES,
) -> ResultadoArqueo:
    """Verifica un conteo físico contra un monto esperado.

    Args:
        conteos: Pares (clave de denominación, cantidad). Cada clave una vez.
        monto_esperado: Monto contra el que se compara.
        permitir_vacio: Si False (por defecto), un conteo sin entradas o
                        con todas las cantidades en 0 queda en estado
                        VACIO y nunca se verifica, aunque se espere 0.
        catalogo: Denominaciones aceptadas.

    Returns:
        ResultadoArqueo con líneas ordenadas de mayor a menor valor.

    Raises:
        ValidationError: denominación fuera de catálogo o repetida,
                         cantidad negativa o no entera, monto inválido.

    Ejemplos:
        >>> r = reconcile_count(
        ...     [ConteoDenominacion("50", 1), ConteoDenominacion("20", 2),
        ...      ConteoDenominacion("1_b", 5)],
        ...     Decimal("95.00"),
        ... )
        >>> r.total_contado, r.coincide
        (Decimal('95.00'), True)
    """
    esperado = round_cents(to_money(monto_esperado, "monto_esperado"))
    por_clave = {d.clave: d for d in catalogo}

    lineas: list[LineaArqueo] = []
    usadas: set[str] = set()
    for conteo in conteos:
        denominacion = por_clave.get(conteo.clave)
        if denominacion is None:
            raise ValidationError(
                "denominacion", f"'{conteo.clave}' no está en el catálogo de denominaciones"
            )
        if conteo.clave in usadas:
            raise ValidationError(
                "denominacion", f"'{conteo.clave}' aparece más de una vez en el conteo"
            )
        usadas.add(conteo.clave)

        cantidad = conteo.cantidad
        if isinstance(cantidad, bool) or not isinstance(cantidad, int):
            raise ValidationError("cantidad", f"debe ser un entero, se recibió {cantidad!r}")
        if cantidad < 0:
            raise ValidationError("cantidad", f"no puede ser negativa: {cantidad}")

        lineas.append(
            LineaArqueo(
                denominacion=denominacion,
                cantidad=cantidad,
                subtotal=round_cents(denominacion.valor * cantidad),
            )
        )

    lineas.sort(key=lambda linea: linea.denominacion.valor, reverse=True)

    total = round_cents(sum((linea.subtotal for linea in lineas), CERO))
    diferencia = round_cents(total - esperado)
    vacio = all(linea.cantidad == 0 for linea in lineas)

    return ResultadoArqueo(
        lineas=tuple(lineas),
        total_contado=total,
        monto_esperado=esperado,
        diferencia=diferencia,
        estado=_clasificar(diferencia, vacio and not permitir_vacio),
    )


def _clasificar(diferencia, vacio: bool) -> EstadoArqueo:
    if vacio:
        return EstadoArqueo.VACIO
    if diferencia > 0:
        return EstadoArqueo.SOBRANTE
    if diferencia < 0:
        return EstadoArqueo.FALTANTE
    return EstadoArqueo.VERIFICADO
