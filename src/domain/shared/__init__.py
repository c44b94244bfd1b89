"""
Utilidades compartidas del dominio.

Funciones puras sin dependencias externas. Las usa cada componente del
núcleo (libro de transacciones, retenciones, arqueo, ciclo de caja).

Uso:
    from src.domain.shared.money import round_cents, apply_percentage, to_money
"""
