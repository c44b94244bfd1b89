"""
Tests para src.domain.services.ciclo_caja (CashBoxLifecycle).

Todos parten de la caja de $500 de conftest (5 billetes de $100) sobre
el almacenamiento en memoria. Reserva de seguridad por defecto: 15%
($75 en esa caja).
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from src.domain.exceptions import (
    BusinessRuleError,
    ConsistencyError,
    InvalidStateError,
    ManualInterventionError,
    ValidationError,
)
from src.domain.models import (
    AccionBitacora,
    ConfiguracionCaja,
    ConteoDenominacion,
    DatosApertura,
    DatosDeposito,
    DatosFactura,
    DatosReposicion,
    EstadoArqueo,
    EstadoCaja,
    ItemRetencion,
    ItemTransaccion,
    Proveedor,
    TipoDocumento,
    Transaccion,
)
from src.domain.services.ciclo_caja import CicloCaja
from src.domain.services.politicas import PoliticaSinRestriccion

REPOSICION = DatosReposicion(fecha_cierre=date(2024, 3, 31), numero_cheque=" 000123 ", banco="Pichincha")


def _conteo(*pares):
    return [ConteoDenominacion(clave, cantidad) for clave, cantidad in pares]


def _acciones(store):
    return [entrada.accion for entrada in store.bitacora]


def _guardada(store, caja_id, tx_id):
    return next(t for t in store.fetch_transactions(caja_id) if t.id == tx_id)


def _retener(ciclo, store, caja_id, tx_id, fuente="1", iva="30"):
    linea = _guardada(store, caja_id, tx_id).items[0]
    return ciclo.guardar_retencion(
        caja_id,
        tx_id,
        date(2024, 3, 11),
        "001-001-000000777",
        [ItemRetencion(linea.id, porcentaje_fuente=Decimal(fuente), porcentaje_iva=Decimal(iva))],
    )


class TestAbrir:
    def test_abre_y_audita(self, store, logger, caja):
        assert caja.id == 1
        assert caja.esta_abierta
        assert caja.monto_inicial == Decimal("500.00")
        assert store.fetch_caja(caja.id) == caja
        assert logger.nombres() == ["arqueo", "caja_abierta"]

        [entrada] = store.bitacora
        assert entrada.accion == AccionBitacora.APERTURA_CAJA
        assert entrada.detalle["monto_inicial"] == "500.00"
        assert entrada.detalle["arqueo"]["total_verificado"] == "500.00"

    def test_monto_inicial_en_cero(self, ciclo):
        with pytest.raises(ValidationError, match="mayor a 0"):
            ciclo.abrir(DatosApertura(date(2024, 3, 1), "Ana", "Matriz"), [])

    def test_arqueo_que_no_cuadra(self, ciclo, store, logger):
        datos = DatosApertura(date(2024, 3, 1), "Ana", "Matriz", saldo_anterior=Decimal("500"))
        with pytest.raises(BusinessRuleError) as exc:
            ciclo.abrir(datos, _conteo(("100", 4)))

        assert exc.value.regla == "arqueo_apertura"
        assert exc.value.cifras["diferencia"] == Decimal("-100.00")
        assert logger.de_tipo("regla")[0]["regla"] == "arqueo_apertura"
        assert store.bitacora == []

    def test_arqueo_vacio(self, ciclo):
        datos = DatosApertura(date(2024, 3, 1), "Ana", "Matriz", reposicion=Decimal("50"))
        with pytest.raises(BusinessRuleError, match="vacío"):
            ciclo.abrir(datos, [])


class TestRegistrarTransaccion:
    def test_registra_y_recalcula(self, ciclo, store, logger, caja, nuevo_gasto):
        tx = ciclo.registrar_transaccion(caja.id, nuevo_gasto(("Resma de papel", "100", True)))

        assert tx.id is not None
        assert tx.caja_id == caja.id
        assert tx.total == Decimal("115.00")
        assert ciclo.resumen(caja.id).efectivo == Decimal("385.00")
        assert logger.de_tipo("transaccion") == [{"caja_id": caja.id, "id": tx.id, "accion": "crear"}]
        assert _acciones(store)[-1] == AccionBitacora.CREAR_GASTO

    def test_caja_cerrada_no_acepta_gastos(self, ciclo, store, caja, nuevo_gasto):
        ciclo.cerrar(caja.id, _conteo(("100", 5)), REPOSICION)

        with pytest.raises(InvalidStateError):
            ciclo.registrar_transaccion(caja.id, nuevo_gasto(("Papel", "10")))
        assert store.fetch_transactions(caja.id) == []

    @pytest.mark.parametrize(
        "lineas,total",
        [
            ((), Decimal("0")),
            ((ItemTransaccion.crear("Papel", Decimal("10")),), Decimal("11.00")),
            ((ItemTransaccion("Papel", Decimal("100"), True, Decimal("12")),), Decimal("112.00")),
        ],
        ids=["sin_items", "total_inconsistente", "iva_incorrecto"],
    )
    def test_gasto_mal_formado(self, ciclo, store, caja, lineas, total):
        tx = Transaccion(
            fecha=date(2024, 3, 10),
            tipo_documento=TipoDocumento.FACTURA,
            numero="001",
            total=total,
            items=lineas,
        )
        with pytest.raises(ValidationError):
            ciclo.registrar_transaccion(caja.id, tx)
        assert store.fetch_transactions(caja.id) == []

    def test_un_deposito_no_es_un_gasto(self, ciclo, caja, nuevo_gasto):
        with pytest.raises(ValidationError, match="registrar_deposito"):
            ciclo.registrar_transaccion(caja.id, nuevo_gasto(("Depósito", "10"), tipo=TipoDocumento.DEPOSITO))

    def test_saldo_insuficiente(self, ciclo, caja, nuevo_gasto):
        with pytest.raises(BusinessRuleError) as exc:
            ciclo.registrar_transaccion(caja.id, nuevo_gasto(("Computadora", "600")))
        assert exc.value.regla == "saldo_insuficiente"

    def test_reserva_de_seguridad(self, ciclo, store, logger):
        caja = ciclo.abrir(
            DatosApertura(date(2024, 3, 1), "Luis", "Norte", saldo_anterior=Decimal("1000")),
            _conteo(("100", 10)),
        )
        gasto = Transaccion(
            fecha=date(2024, 3, 5),
            tipo_documento=TipoDocumento.FACTURA,
            numero="001",
            total=Decimal("800.00"),
            items=(ItemTransaccion.crear("Mobiliario", Decimal("800")),),
        )
        ciclo.registrar_transaccion(caja.id, gasto)

        # efectivo 200; 200 - 60 = 140 < 150 (15% de 1000)
        pequeno = replace(gasto, total=Decimal("60.00"), items=(ItemTransaccion.crear("Tóner", Decimal("60")),))
        with pytest.raises(BusinessRuleError) as exc:
            ciclo.registrar_transaccion(caja.id, pequeno)

        assert exc.value.regla == "reserva_seguridad"
        assert exc.value.cifras["reserva"] == Decimal("150.00")
        assert exc.value.cifras["saldo_proyectado"] == Decimal("140.00")
        assert "15%" in exc.value.mensaje
        assert len(store.fetch_transactions(caja.id)) == 1

        # dejar exactamente la reserva está permitido
        justo = replace(gasto, total=Decimal("50.00"), items=(ItemTransaccion.crear("Tóner", Decimal("50")),))
        ciclo.registrar_transaccion(caja.id, justo)
        assert ciclo.resumen(caja.id).efectivo == Decimal("150.00")

    def test_reserva_configurable(self, store, logger, nuevo_gasto):
        ciclo = CicloCaja(
            store,
            logger,
            config=ConfiguracionCaja(porcentaje_reserva=Decimal("0")),
            politica=PoliticaSinRestriccion(),
        )
        caja = ciclo.abrir(
            DatosApertura(date(2024, 3, 1), "Ana", "Matriz", saldo_anterior=Decimal("100")),
            _conteo(("100", 1)),
        )
        ciclo.registrar_transaccion(caja.id, nuevo_gasto(("Todo", "100")))
        assert ciclo.resumen(caja.id).efectivo == Decimal("0.00")

    def test_aviso_de_saldo_bajo(self, ciclo, logger, caja, nuevo_gasto):
        ciclo.registrar_transaccion(caja.id, nuevo_gasto(("Varios", "425")))
        assert logger.de_tipo("aviso")[-1]["mensaje"].startswith("Saldo bajo: queda 15.00%")
        assert ciclo.alerta_saldo(caja.id).saldo_bajo

    def test_fallo_de_bitacora_no_anula_el_gasto(self, ciclo, store, logger, caja, nuevo_gasto):
        store.simular_fallo("append_audit_entry")
        tx = ciclo.registrar_transaccion(caja.id, nuevo_gasto(("Papel", "10")))

        assert _guardada(store, caja.id, tx.id).total == Decimal("10.00")
        assert logger.de_tipo("error")[0]["operacion"] == "bitacora:CREAR_GASTO"


class TestPoliticaDeCalendario:
    def _ciclo(self, store, logger, dia):
        return CicloCaja(store, logger, reloj=lambda: date(2024, 3, dia))

    def test_bloquea_desde_el_dia_28(self, store, logger, caja, nuevo_gasto):
        ciclo = self._ciclo(store, logger, 28)
        with pytest.raises(BusinessRuleError) as exc:
            ciclo.registrar_transaccion(caja.id, nuevo_gasto(("Papel", "10")))
        assert exc.value.regla == "cierre_mensual"

        with pytest.raises(BusinessRuleError):
            ciclo.registrar_deposito(caja.id, DatosDeposito(date(2024, 3, 28), Decimal("10"), "Pichincha"))

    def test_avisa_en_los_dias_previos(self, store, logger, caja, nuevo_gasto):
        ciclo = self._ciclo(store, logger, 26)
        ciclo.registrar_transaccion(caja.id, nuevo_gasto(("Papel", "10")))
        assert logger.de_tipo("aviso")[0]["mensaje"].startswith("Faltan 2 día(s)")

    def test_el_cierre_no_se_bloquea(self, store, logger, caja):
        ciclo = self._ciclo(store, logger, 30)
        assert ciclo.cerrar(caja.id, _conteo(("100", 5)), REPOSICION).estado == EstadoCaja.CERRADA


class TestActualizarTransaccion:
    def test_edita_cabecera_y_lineas(self, ciclo, store, caja, nuevo_gasto):
        tx = ciclo.registrar_transaccion(caja.id, nuevo_gasto(("Papel", "100", True)))
        nuevo = nuevo_gasto(("Papel", "200", True), numero="001-001-000000999")

        actualizado = ciclo.actualizar_transaccion(caja.id, tx.id, nuevo)

        assert actualizado.total == Decimal("230.00")
        guardada = _guardada(store, caja.id, tx.id)
        assert guardada.numero == "001-001-000000999"
        assert guardada.total == Decimal("230.00")
        assert ciclo.resumen(caja.id).efectivo == Decimal("270.00")
        assert _acciones(store)[-1] == AccionBitacora.EDITAR_GASTO

    def test_el_total_original_se_libera(self, ciclo, caja, nuevo_gasto):
        tx = ciclo.registrar_transaccion(caja.id, nuevo_gasto(("Varios", "400")))

        # disponible 100 + 400; 500 - 425 = 75 == reserva
        ciclo.actualizar_transaccion(caja.id, tx.id, nuevo_gasto(("Varios", "425")))
        with pytest.raises(BusinessRuleError, match="mínimo del 15"):
            ciclo.actualizar_transaccion(caja.id, tx.id, nuevo_gasto(("Varios", "430")))

    def test_retencion_bloquea_montos_pero_no_nombres(self, ciclo, store, caja, nuevo_gasto):
        tx = ciclo.registrar_transaccion(caja.id, nuevo_gasto(("Repuestos", "100", True)))
        ids_originales = [i.id for i in _guardada(store, caja.id, tx.id).items]
        _retener(ciclo, store, caja.id, tx.id)

        with pytest.raises(InvalidStateError):
            ciclo.actualizar_transaccion(caja.id, tx.id, nuevo_gasto(("Repuestos", "90", True)))

        ciclo.actualizar_transaccion(caja.id, tx.id, nuevo_gasto(("Repuestos de freno", "100", True)))
        guardada = _guardada(store, caja.id, tx.id)
        assert [i.nombre for i in guardada.items] == ["Repuestos de freno"]
        assert [i.id for i in guardada.items] == ids_originales
        assert guardada.retencion.total_retenido == Decimal("5.50")

    def test_gasto_legalizado_no_se_edita(self, ciclo, caja, nuevo_gasto):
        tx = ciclo.registrar_transaccion(caja.id, nuevo_gasto(("Taxi", "30"), tipo=TipoDocumento.SIN_FACTURA))
        factura = ciclo.legalizar(
            caja.id, [tx.id], DatosFactura(Proveedor("Cooperativa"), "001-009", date(2024, 3, 12))
        )

        with pytest.raises(InvalidStateError, match="legalizada"):
            ciclo.actualizar_transaccion(caja.id, tx.id, nuevo_gasto(("Taxi", "35"), tipo=TipoDocumento.SIN_FACTURA))
        with pytest.raises(InvalidStateError, match="justificación"):
            ciclo.actualizar_transaccion(caja.id, factura.id, nuevo_gasto(("Taxi", "35")))

    def test_transaccion_inexistente(self, ciclo, caja, nuevo_gasto):
        with pytest.raises(ValidationError, match="no existe"):
            ciclo.actualizar_transaccion(caja.id, 99, nuevo_gasto(("Papel", "10")))

    def test_fallo_en_las_lineas_restaura_la_cabecera(self, ciclo, store, logger, caja, nuevo_gasto):
        tx = ciclo.registrar_transaccion(caja.id, nuevo_gasto(("Papel", "100", True)))
        store.simular_fallo("replace_line_items")

        with pytest.raises(ConsistencyError) as exc:
            ciclo.actualizar_transaccion(caja.id, tx.id, nuevo_gasto(("Papel", "200", True)))

        assert exc.value.paso == "reemplazar_lineas"
        assert _guardada(store, caja.id, tx.id).total == Decimal("115.00")
        assert logger.de_tipo("compensacion") == [
            {"operacion": "editar_gasto", "paso": "actualizar_cabecera", "exitosa": True}
        ]


class TestEliminarTransaccion:
    def test_elimina(self, ciclo, store, caja, nuevo_gasto):
        tx = ciclo.registrar_transaccion(caja.id, nuevo_gasto(("Papel", "10")))
        ciclo.eliminar_transaccion(caja.id, tx.id)
        assert store.fetch_transactions(caja.id) == []
        assert _acciones(store)[-1] == AccionBitacora.ELIMINAR_GASTO

    def test_con_retencion(self, ciclo, store, caja, nuevo_gasto):
        tx = ciclo.registrar_transaccion(caja.id, nuevo_gasto(("Repuestos", "100", True)))
        _retener(ciclo, store, caja.id, tx.id)
        with pytest.raises(InvalidStateError, match="retención"):
            ciclo.eliminar_transaccion(caja.id, tx.id)

    def test_legalizado_y_su_factura(self, ciclo, caja, nuevo_gasto):
        tx = ciclo.registrar_transaccion(caja.id, nuevo_gasto(("Taxi", "30"), tipo=TipoDocumento.SIN_FACTURA))
        factura = ciclo.legalizar(
            caja.id, [tx.id], DatosFactura(Proveedor("Cooperativa"), "001-009", date(2024, 3, 12))
        )

        with pytest.raises(InvalidStateError):
            ciclo.eliminar_transaccion(caja.id, tx.id)
        with pytest.raises(BusinessRuleError) as exc:
            ciclo.eliminar_transaccion(caja.id, factura.id)
        assert exc.value.regla == "justificacion_con_gastos"
        assert exc.value.cifras == {"hijos": [tx.id]}


class TestDepositos:
    def test_deposito_resta_efectivo(self, ciclo, store, caja):
        deposito = ciclo.registrar_deposito(caja.id, DatosDeposito(date(2024, 3, 15), Decimal("100"), " Pichincha "))

        assert deposito.es_deposito
        assert deposito.numero == "DEPOSITO"
        assert deposito.banco == "Pichincha"
        totales = ciclo.resumen(caja.id)
        assert totales.facturado == Decimal("0.00")
        assert totales.total_depositos == Decimal("100.00")
        assert totales.efectivo == Decimal("400.00")
        assert _acciones(store)[-1] == AccionBitacora.REGISTRAR_DEPOSITO

    def test_no_supera_el_efectivo(self, ciclo, caja):
        with pytest.raises(BusinessRuleError) as exc:
            ciclo.registrar_deposito(caja.id, DatosDeposito(date(2024, 3, 15), Decimal("500.01"), "Pichincha"))
        assert exc.value.regla == "saldo_insuficiente"

    def test_depositar_todo_y_cerrar_sin_efectivo(self, ciclo, caja):
        ciclo.registrar_deposito(caja.id, DatosDeposito(date(2024, 3, 15), Decimal("500"), "Pichincha"))
        assert ciclo.evaluar_cierre(caja.id, []).permitido
        cerrada = ciclo.cerrar(caja.id, [], REPOSICION)
        assert cerrada.monto_reposicion == Decimal("0.00")


class TestRetenciones:
    def test_guardar_y_recalcular(self, ciclo, store, logger, caja, nuevo_gasto):
        tx = ciclo.registrar_transaccion(caja.id, nuevo_gasto(("Repuestos", "100", True), ("Mano de obra", "50")))
        retencion = _retener(ciclo, store, caja.id, tx.id)

        assert retencion.total_fuente == Decimal("1.00")
        assert retencion.total_iva == Decimal("4.50")
        assert retencion.total_retenido == Decimal("5.50")
        totales = ciclo.resumen(caja.id)
        assert totales.neto == Decimal("159.50")
        assert totales.efectivo == Decimal("340.50")
        assert logger.de_tipo("retencion")[-1]["accion"] == "crear"
        assert _acciones(store)[-1] == AccionBitacora.CREAR_RETENCION

    def test_editar_conserva_id_y_recaudacion(self, ciclo, store, logger, caja, nuevo_gasto):
        tx = ciclo.registrar_transaccion(caja.id, nuevo_gasto(("Repuestos", "100", True)))
        primera = _retener(ciclo, store, caja.id, tx.id)
        store.set_withholding_collected(primera.id, True)

        segunda = _retener(ciclo, store, caja.id, tx.id, fuente="2", iva="70")

        assert segunda.id == primera.id
        assert segunda.recaudada
        assert segunda.total_retenido == Decimal("12.50")
        assert logger.de_tipo("retencion")[-1]["accion"] == "editar"
        assert _acciones(store)[-1] == AccionBitacora.EDITAR_RETENCION

    def test_numero_obligatorio(self, ciclo, caja, nuevo_gasto):
        tx = ciclo.registrar_transaccion(caja.id, nuevo_gasto(("Repuestos", "100", True)))
        with pytest.raises(ValidationError, match="número de retención"):
            ciclo.guardar_retencion(caja.id, tx.id, date(2024, 3, 11), "  ", [])

    def test_deposito_no_se_retiene(self, ciclo, caja):
        deposito = ciclo.registrar_deposito(caja.id, DatosDeposito(date(2024, 3, 15), Decimal("10"), "Pichincha"))
        with pytest.raises(ValidationError, match="depósito"):
            ciclo.guardar_retencion(caja.id, deposito.id, date(2024, 3, 15), "R-1", [])

    def test_gasto_sin_factura_no_se_retiene(self, ciclo, store, caja, nuevo_gasto):
        tx = ciclo.registrar_transaccion(
            caja.id, nuevo_gasto(("Repuestos", "100", True), tipo=TipoDocumento.SIN_FACTURA)
        )
        antes = ciclo.resumen(caja.id)

        with pytest.raises(ValidationError, match="no tiene factura"):
            _retener(ciclo, store, caja.id, tx.id)
        assert _guardada(store, caja.id, tx.id).retencion is None

        # sin retención, legalizar no mueve los totales
        ciclo.legalizar(caja.id, [tx.id], DatosFactura(Proveedor("Taller"), "001-020", date(2024, 3, 12)))
        assert ciclo.resumen(caja.id) == antes

    def test_eliminar_desbloquea_las_lineas(self, ciclo, store, caja, nuevo_gasto):
        tx = ciclo.registrar_transaccion(caja.id, nuevo_gasto(("Repuestos", "100", True)))
        _retener(ciclo, store, caja.id, tx.id)

        ciclo.eliminar_retencion(caja.id, tx.id)

        assert _guardada(store, caja.id, tx.id).retencion is None
        assert _acciones(store)[-1] == AccionBitacora.ELIMINAR_RETENCION
        ciclo.actualizar_transaccion(caja.id, tx.id, nuevo_gasto(("Repuestos", "90", True)))

    def test_eliminar_sin_retencion(self, ciclo, caja, nuevo_gasto):
        tx = ciclo.registrar_transaccion(caja.id, nuevo_gasto(("Papel", "10")))
        with pytest.raises(ValidationError, match="no tiene retención"):
            ciclo.eliminar_retencion(caja.id, tx.id)


class TestArqueoControl:
    def test_registra_la_diferencia_sin_bloquear(self, ciclo, store, logger, caja):
        arqueo = ciclo.arqueo_control(caja.id, _conteo(("100", 4), ("50", 1)), "falta un billete")

        assert arqueo.estado == EstadoArqueo.FALTANTE
        assert arqueo.diferencia == Decimal("-50.00")
        entrada = store.bitacora[-1]
        assert entrada.accion == AccionBitacora.ARQUEO_CONTROL
        assert entrada.detalle["coincide"] is False
        assert entrada.detalle["diferencia"] == "-50.00"
        assert entrada.detalle["observacion"] == "falta un billete"
        assert logger.de_tipo("arqueo")[-1]["contexto"] == "control"

    def test_caja_cerrada(self, ciclo, caja):
        ciclo.cerrar(caja.id, _conteo(("100", 5)), REPOSICION)
        with pytest.raises(InvalidStateError):
            ciclo.arqueo_control(caja.id, _conteo(("100", 5)))


class TestCerrar:
    def _legalizados(self, ciclo, caja, nuevo_gasto):
        taxi = ciclo.registrar_transaccion(caja.id, nuevo_gasto(("Taxi", "30.00"), tipo=TipoDocumento.SIN_FACTURA))
        almuerzo = ciclo.registrar_transaccion(
            caja.id, nuevo_gasto(("Almuerzo", "45.50"), tipo=TipoDocumento.SIN_FACTURA)
        )
        return taxi, almuerzo

    def test_bloquea_con_legalizaciones_pendientes(self, ciclo, store, caja, nuevo_gasto):
        taxi, almuerzo = self._legalizados(ciclo, caja, nuevo_gasto)
        conteo = _conteo(("100", 4), ("20", 1), ("1_b", 4), ("0.5", 1))

        evaluacion = ciclo.evaluar_cierre(caja.id, conteo)
        assert not evaluacion.permitido
        assert evaluacion.pendientes == (taxi.id, almuerzo.id)

        with pytest.raises(BusinessRuleError) as exc:
            ciclo.cerrar(caja.id, conteo, REPOSICION)
        assert exc.value.regla == "legalizaciones_pendientes"
        assert store.fetch_caja(caja.id).esta_abierta

    def test_cierra_tras_legalizar(self, ciclo, store, logger, caja, nuevo_gasto):
        taxi, almuerzo = self._legalizados(ciclo, caja, nuevo_gasto)
        ciclo.legalizar(
            caja.id, [taxi.id, almuerzo.id], DatosFactura(Proveedor("Varios"), "001-010", date(2024, 3, 20))
        )
        # efectivo esperado 424.50
        conteo = _conteo(("100", 4), ("20", 1), ("1_b", 4), ("0.5", 1))

        cerrada = ciclo.cerrar(caja.id, conteo, REPOSICION)

        assert cerrada.estado == EstadoCaja.CERRADA
        assert cerrada.monto_reposicion == Decimal("75.50")
        assert cerrada.numero_cheque_reposicion == "000123"
        assert store.fetch_caja(caja.id) == cerrada
        entrada = store.bitacora[-1]
        assert entrada.accion == AccionBitacora.CIERRE_CAJA
        assert entrada.detalle["gastos_netos"] == "75.50"
        assert entrada.detalle["efectivo_esperado"] == "424.50"
        assert logger.nombres()[-1] == "caja_cerrada"

    def test_arqueo_que_no_cuadra(self, ciclo, store, caja):
        with pytest.raises(BusinessRuleError) as exc:
            # 499.99 contra 500.00
            ciclo.cerrar(
                caja.id,
                _conteo(("100", 4), ("50", 1), ("20", 2), ("5", 1), ("1_m", 4), ("0.01", 99)),
                REPOSICION,
            )
        assert exc.value.regla == "arqueo_cierre"
        assert exc.value.cifras["diferencia"] == Decimal("-0.01")
        assert store.fetch_caja(caja.id).esta_abierta

    def test_conteo_vacio_con_efectivo(self, ciclo, caja):
        with pytest.raises(BusinessRuleError, match="vacío"):
            ciclo.cerrar(caja.id, [], REPOSICION)

    def test_fecha_anterior_a_la_apertura(self, ciclo, caja):
        datos = DatosReposicion(fecha_cierre=date(2024, 2, 28), numero_cheque="1", banco="Pichincha")
        with pytest.raises(ValidationError, match="anterior a la apertura"):
            ciclo.cerrar(caja.id, _conteo(("100", 5)), datos)

    def test_no_se_cierra_dos_veces(self, ciclo, caja):
        ciclo.cerrar(caja.id, _conteo(("100", 5)), REPOSICION)
        with pytest.raises(InvalidStateError):
            ciclo.cerrar(caja.id, _conteo(("100", 5)), REPOSICION)

    def test_fallo_de_bitacora_reabre_la_caja(self, ciclo, store, logger, caja):
        store.simular_fallo("append_audit_entry")

        with pytest.raises(ConsistencyError) as exc:
            ciclo.cerrar(caja.id, _conteo(("100", 5)), REPOSICION)

        assert exc.value.paso == "bitacora_cierre"
        reabierta = store.fetch_caja(caja.id)
        assert reabierta.esta_abierta
        assert reabierta.fecha_cierre is None
        assert reabierta.monto_reposicion is None
        assert logger.de_tipo("compensacion") == [
            {"operacion": "cierre_caja", "paso": "cerrar_caja", "exitosa": True}
        ]

    def test_fallo_al_reabrir_pide_intervencion_manual(self, ciclo, store, caja):
        store.simular_fallo("append_audit_entry")
        store.simular_fallo("update_box_state", en_llamada=2)

        with pytest.raises(ManualInterventionError) as exc:
            ciclo.cerrar(caja.id, _conteo(("100", 5)), REPOSICION)

        assert exc.value.pasos_pendientes == ["cerrar_caja"]
        assert not store.fetch_caja(caja.id).esta_abierta
