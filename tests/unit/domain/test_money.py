"""
Tests para src.domain.shared.money

Los casos vienen de los montos que usa la caja:
- IVA del 15% sobre líneas con centavos → 4 decimales
- porcentajes de retención (1%, 2%, 30%, 70%, 100%)
- textos de formularios y de la tabla de configuración
"""

from decimal import Decimal

import pytest

from src.domain.exceptions import ValidationError
from src.domain.shared.money import (
    apply_percentage,
    format_money,
    parse_money,
    round_cents,
    tax_for,
    to_money,
)


class TestToMoney:
    """Pruebas para to_money (conversión en la frontera)."""

    def test_desde_string(self):
        assert to_money("12.50") == Decimal("12.50")

    def test_desde_int(self):
        assert to_money(100) == Decimal("100")

    def test_float_sin_arrastre_binario(self):
        """Decimal(0.1) arrastra 55 decimales; vía str() queda 0.1."""
        assert to_money(0.1) == Decimal("0.1")

    def test_decimal_se_devuelve_igual(self):
        assert to_money(Decimal("3.3333")) == Decimal("3.3333")

    def test_none_lanza_error(self):
        with pytest.raises(ValidationError, match="obligatorio"):
            to_money(None)

    def test_bool_no_es_monto(self):
        with pytest.raises(ValidationError, match="se esperaba un número"):
            to_money(True)

    @pytest.mark.parametrize("valor", [float("nan"), float("inf"), float("-inf")])
    def test_float_no_finito(self, valor):
        with pytest.raises(ValidationError, match="no válido"):
            to_money(valor)

    @pytest.mark.parametrize("valor", ["NaN", "Infinity"])
    def test_string_no_finito(self, valor):
        with pytest.raises(ValidationError):
            to_money(valor)

    def test_texto_no_numerico(self):
        with pytest.raises(ValidationError, match="no es un número"):
            to_money("doce")

    def test_el_error_nombra_el_campo(self):
        with pytest.raises(ValidationError) as exc:
            to_money("x", "monto_inicial")
        assert exc.value.campo == "monto_inicial"


class TestRoundCents:
    def test_mitad_hacia_arriba(self):
        assert round_cents(Decimal("1.005")) == Decimal("1.01")

    def test_abajo_de_la_mitad(self):
        assert round_cents(Decimal("1.0049")) == Decimal("1.00")

    def test_negativo_se_aleja_de_cero(self):
        assert round_cents(Decimal("-0.125")) == Decimal("-0.13")

    def test_siempre_dos_decimales(self):
        assert str(round_cents(Decimal("5"))) == "5.00"


class TestApplyPercentage:
    def test_uno_por_ciento(self):
        assert apply_percentage(Decimal("100"), Decimal("1")) == Decimal("1.0000")

    def test_treinta_por_ciento_del_iva(self):
        assert apply_percentage(Decimal("15.0000"), Decimal("30")) == Decimal("4.5000")

    def test_redondea_a_cuatro_decimales(self):
        # 33.33 × 2.75% = 0.916575 → 0.9166
        assert apply_percentage(Decimal("33.33"), Decimal("2.75")) == Decimal("0.9166")

    def test_precision_configurable(self):
        assert apply_percentage(Decimal("1000"), Decimal("15"), 2) == Decimal("150.00")

    def test_cero_por_ciento(self):
        assert apply_percentage(Decimal("250.00"), Decimal("0")) == Decimal("0.0000")


class TestTaxFor:
    def test_linea_con_iva(self):
        assert tax_for(Decimal("100"), True, Decimal("0.15")) == Decimal("15.0000")

    def test_linea_con_centavos(self):
        # 10.33 × 0.15 = 1.5495
        assert tax_for(Decimal("10.33"), True, Decimal("0.15")) == Decimal("1.5495")

    def test_linea_sin_iva(self):
        assert tax_for(Decimal("100"), False, Decimal("0.15")) == Decimal("0")


class TestParseMoney:
    """Pruebas para parse_money (textos de formularios y configuración)."""

    def test_monto_simple(self):
        assert parse_money("1234.56") == Decimal("1234.56")

    def test_con_signo_y_comas(self):
        assert parse_money("$1,234.56") == Decimal("1234.56")

    def test_con_espacios_alrededor(self):
        assert parse_money("  15  ") == Decimal("15")

    def test_negativo(self):
        assert parse_money("-12.00") == Decimal("-12.00")

    def test_vacio_lanza_error(self):
        with pytest.raises(ValidationError, match="vacío"):
            parse_money("   ")

    def test_solo_simbolo_lanza_error(self):
        with pytest.raises(ValidationError):
            parse_money("$")

    def test_no_string_lanza_error(self):
        with pytest.raises(ValidationError, match="se esperaba texto"):
            parse_money(15)


class TestFormatMoney:
    def test_con_miles(self):
        assert format_money(Decimal("1234567.89")) == "$1,234,567.89"

    def test_negativo(self):
        assert format_money(Decimal("-0.01")) == "-$0.01"

    def test_redondea_antes_de_formatear(self):
        assert format_money(Decimal("4.505")) == "$4.51"
