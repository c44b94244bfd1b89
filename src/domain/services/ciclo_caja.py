"""
Servicio de dominio: Ciclo de vida de la caja (CashBoxLifecycle).

Orquesta las operaciones que cambian dinero o estado de una caja:

    abrir ──► abierta ──(gastos, depósitos, retenciones,
                         legalizaciones, arqueos de control)──►
          ──► cerrar ──► cerrada (terminal)

Reglas que aplica antes de escribir:
1. La caja debe estar abierta. Una caja cerrada rechaza todo cambio
   con InvalidStateError.
2. Antes de cada decisión se releen las transacciones del
   almacenamiento. No se guarda un libro en memoria: otro usuario pudo
   haber escrito sobre la misma caja.
3. Un gasto no puede superar el efectivo ni dejar la caja por debajo de
   la reserva de seguridad (porcentaje del monto inicial).
4. El cierre exige cero legalizaciones pendientes y un arqueo que
   cuadre al centavo con el efectivo esperado.

Si una regla rechaza la operación no se escribe nada.

¿Por qué recibir el almacenamiento y no las transacciones?
Porque la relectura es parte de la regla: quien llama no puede pasar
una lista vieja y saltarse la validación.
"""

from collections.abc import Callable, Sequence
from dataclasses import replace
from datetime import date
from decimal import Decimal

from src.domain.exceptions import BusinessRuleError, InvalidStateError, ValidationError
from src.domain.models.arqueo import CATALOGO_DENOMINACIONES, ConteoDenominacion, Denominacion, ResultadoArqueo
from src.domain.models.bitacora import AccionBitacora, EntradaBitacora
from src.domain.models.caja import Caja, DatosApertura, DatosDeposito, DatosReposicion
from src.domain.models.cierre import ResultadoCierre
from src.domain.models.configuracion import ConfiguracionCaja
from src.domain.models.legalizacion import DatosFactura
from src.domain.models.retencion import ItemRetencion, Retencion
from src.domain.models.tipos import EstadoArqueo, EstadoCaja, TipoDocumento
from src.domain.models.totales import AlertaSaldo, Totales
from src.domain.models.transaccion import Transaccion
from src.domain.ports.ledger_store import LedgerStore
from src.domain.ports.politica_transacciones import PoliticaTransacciones
from src.domain.ports.process_logger import ProcessLogger
from src.domain.services.arqueo import reconcile_count
from src.domain.services.auditoria import registrar_auditoria, serializar_detalle
from src.domain.services.compensacion import EscrituraCompensada
from src.domain.services.ledger import compute_totals, evaluar_alerta_saldo, pending_legalizations
from src.domain.services.legalizacion import ejecutar_plan, legalize
from src.domain.services.politicas import PoliticaCierreMensual
from src.domain.services.recaudacion import RecaudacionRetenciones
from src.domain.services.retenciones import assert_items_editable, compute_withholding
from src.domain.shared.money import format_money, round_cents, tax_for, to_money


def can_close(
    caja: Caja,
    transacciones: Sequence[Transaccion],
    conteo: Sequence[ConteoDenominacion] | None = None,
    catalogo: Sequence[Denominacion] = CATALOGO_DENOMINACIONES,
) -> ResultadoCierre:
    """Evalúa si la caja se puede cerrar. No escribe nada.

    Motivos de bloqueo:
    - la caja ya está cerrada;
    - hay gastos sin factura pendientes de legalizar;
    - el arqueo (si se entrega) no cuadra con el efectivo esperado.

    Un conteo vacío solo cuadra cuando el efectivo esperado es 0.
    """
    totales = compute_totals(transacciones, caja)
    motivos: list[str] = []

    if not caja.esta_abierta:
        motivos.append("La caja ya está cerrada")

    pendientes = tuple(t.id for t in pending_legalizations(transacciones))
    if pendientes:
        motivos.append(
            f"Hay {len(pendientes)} gasto(s) sin factura pendientes de legalizar: "
            f"{', '.join(str(p) for p in pendientes)}"
        )

    arqueo = None
    if conteo is not None:
        arqueo = reconcile_count(
            conteo,
            totales.efectivo,
            permitir_vacio=totales.efectivo == 0,
            catalogo=catalogo,
        )
        if not arqueo.coincide:
            motivos.append(_motivo_arqueo(arqueo, "el efectivo esperado"))

    return ResultadoCierre(
        permitido=not motivos,
        motivos=tuple(motivos),
        pendientes=pendientes,
        totales=totales,
        arqueo=arqueo,
    )


class CicloCaja:
    """Operaciones con estado sobre las cajas chicas.

    Recibe sus dependencias por constructor. No sabe si el
    almacenamiento es SQLite, memoria o un servicio remoto: solo conoce
    los puertos.
    """

    def __init__(
        self,
        store: LedgerStore,
        logger: ProcessLogger,
        config: ConfiguracionCaja | None = None,
        politica: PoliticaTransacciones | None = None,
        reloj: Callable[[], date] = date.today,
    ) -> None:
        """
        Args:
            store: Almacenamiento de cajas y transacciones.
            logger: Bitácora de procesamiento.
            config: Reglas (reserva, alerta, IVA, catálogo).
            politica: Política de calendario. Por defecto, cierre mensual
                      con los días de `config`.
            reloj: Fuente de la fecha actual para la política.
        """
        self._store = store
        self._logger = logger
        self._config = config or ConfiguracionCaja()
        self._politica = politica or PoliticaCierreMensual(
            self._config.dia_limite_cierre, self._config.dia_aviso_cierre
        )
        self._reloj = reloj

    @property
    def config(self) -> ConfiguracionCaja:
        return self._config

    # --- Apertura ---

    def abrir(self, datos: DatosApertura, conteo: Sequence[ConteoDenominacion]) -> Caja:
        """Abre una caja verificando el fondo inicial con un arqueo.

        Raises:
            ValidationError: monto inicial 0 o conteo mal formado.
            BusinessRuleError: el arqueo no cuadra con el monto inicial.
        """
        monto_inicial = round_cents(to_money(datos.monto_inicial, "monto_inicial"))
        if monto_inicial <= 0:
            raise ValidationError("monto_inicial", "el monto inicial debe ser mayor a 0")

        arqueo = reconcile_count(conteo, monto_inicial, catalogo=self._config.catalogo)
        self._logger.log_arqueo(None, "apertura", arqueo)
        if not arqueo.coincide:
            self._rechazar(
                None,
                "arqueo_apertura",
                _motivo_arqueo(arqueo, "el monto inicial"),
                {
                    "monto_inicial": monto_inicial,
                    "total_contado": arqueo.total_contado,
                    "diferencia": arqueo.diferencia,
                },
            )

        caja = Caja(
            fecha_apertura=datos.fecha_apertura,
            monto_inicial=monto_inicial,
            responsable=datos.responsable.strip(),
            sucursal=datos.sucursal.strip(),
            saldo_anterior=round_cents(to_money(datos.saldo_anterior, "saldo_anterior")),
            reposicion_inicial=round_cents(to_money(datos.reposicion, "reposicion")),
        )
        caja = replace(caja, id=self._store.insert_caja(caja))

        self._logger.log_caja_abierta(caja)
        self._auditar(
            AccionBitacora.APERTURA_CAJA,
            caja.id,
            {
                "caja_id": caja.id,
                "sucursal": caja.sucursal,
                "responsable": caja.responsable,
                "monto_inicial": caja.monto_inicial,
                "arqueo": {"items": arqueo.desglose(), "total_verificado": arqueo.total_contado},
            },
        )
        return caja

    # --- Gastos ---

    def registrar_transaccion(self, caja_id: int, tx: Transaccion) -> Transaccion:
        """Registra un gasto nuevo en una caja abierta.

        Raises:
            InvalidStateError: la caja está cerrada.
            ValidationError: gasto sin líneas, total inconsistente o depósito.
            BusinessRuleError: política de calendario, saldo insuficiente
                               o reserva de seguridad.
        """
        caja = self._caja_abierta(caja_id, "registrar gasto")
        self._validar_politica(caja_id)
        self._validar_gasto(tx)

        transacciones = self._store.fetch_transactions(caja_id)
        totales = compute_totals(transacciones, caja)
        self._validar_fondos(caja, totales.efectivo, tx.total)

        nuevo = replace(tx, id=None, caja_id=caja_id, parent_id=None, es_justificacion=False, retencion=None)
        guardado = replace(nuevo, id=self._store.insert_transaction(nuevo))

        self._logger.log_transaccion_registrada(caja_id, guardado, "crear")
        self._auditar(
            AccionBitacora.CREAR_GASTO,
            caja_id,
            {
                "transaccion_id": guardado.id,
                "tipo_documento": guardado.tipo_documento.value,
                "numero": guardado.numero,
                "total": guardado.total,
            },
        )
        self._avisar_saldo_bajo(caja, [*transacciones, guardado])
        return guardado

    def actualizar_transaccion(self, caja_id: int, transaccion_id: int, tx: Transaccion) -> Transaccion:
        """Edita un gasto existente (cabecera y líneas).

        El efectivo disponible para la edición incluye el total original,
        que se libera al reemplazarlo.

        Raises:
            InvalidStateError: caja cerrada, gasto legalizado o factura de
                               justificación, líneas bloqueadas por retención.
            ValidationError: gasto inexistente o mal formado.
            BusinessRuleError: saldo insuficiente o reserva de seguridad.
        """
        caja = self._caja_abierta(caja_id, "editar gasto")
        self._validar_gasto(tx)

        transacciones = self._store.fetch_transactions(caja_id)
        original = self._buscar(transacciones, transaccion_id)
        if original.es_deposito:
            raise ValidationError("transaccion_id", f"la transacción {transaccion_id} es un depósito")
        if original.parent_id is not None:
            raise InvalidStateError(
                f"transacción {transaccion_id}", f"legalizada por {original.parent_id}", "editar gasto"
            )
        if original.es_justificacion:
            raise InvalidStateError(
                f"transacción {transaccion_id}", "factura de justificación", "editar gasto"
            )
        assert_items_editable(original, tx.items)

        totales = compute_totals(transacciones, caja)
        self._validar_fondos(caja, totales.efectivo + original.total, tx.total)

        items = tx.items
        if original.retencion is not None and [i.estructura for i in items] == [
            i.estructura for i in original.items
        ]:
            items = tuple(replace(nuevo, id=viejo.id) for nuevo, viejo in zip(items, original.items))

        escritura = EscrituraCompensada("editar_gasto", self._logger)
        escritura.paso(
            "actualizar_cabecera",
            lambda: self._store.update_transaction(transaccion_id, _cabecera(tx)),
            lambda _: self._store.update_transaction(transaccion_id, _cabecera(original)),
        )
        escritura.paso(
            "reemplazar_lineas",
            lambda: self._store.replace_line_items(transaccion_id, list(items)),
            lambda _: self._store.replace_line_items(transaccion_id, list(original.items)),
        )

        actualizado = replace(
            tx,
            id=transaccion_id,
            caja_id=caja_id,
            items=items,
            parent_id=None,
            es_justificacion=False,
            retencion=original.retencion,
        )
        self._logger.log_transaccion_registrada(caja_id, actualizado, "editar")
        self._auditar(
            AccionBitacora.EDITAR_GASTO,
            caja_id,
            {
                "transaccion_id": transaccion_id,
                "total_anterior": original.total,
                "total_nuevo": actualizado.total,
            },
        )
        return actualizado

    def eliminar_transaccion(self, caja_id: int, transaccion_id: int) -> None:
        """Elimina un gasto o depósito de una caja abierta.

        Raises:
            InvalidStateError: caja cerrada, gasto con retención o legalizado.
            BusinessRuleError: factura de justificación que aún tiene gastos.
        """
        self._caja_abierta(caja_id, "eliminar gasto")
        transacciones = self._store.fetch_transactions(caja_id)
        tx = self._buscar(transacciones, transaccion_id)

        if tx.retencion is not None:
            raise InvalidStateError(
                f"transacción {transaccion_id}", "con retención", "eliminar (elimine primero la retención)"
            )
        if tx.parent_id is not None:
            raise InvalidStateError(
                f"transacción {transaccion_id}", f"legalizada por {tx.parent_id}", "eliminar"
            )
        hijos = [t.id for t in transacciones if t.parent_id == transaccion_id]
        if hijos:
            self._rechazar(
                caja_id,
                "justificacion_con_gastos",
                f"La factura {tx.numero} justifica {len(hijos)} gasto(s); no se puede eliminar",
                {"hijos": hijos},
            )

        self._store.delete_transaction(transaccion_id)
        self._logger.log_transaccion_registrada(caja_id, tx, "eliminar")
        self._auditar(
            AccionBitacora.ELIMINAR_GASTO,
            caja_id,
            {
                "transaccion_id": transaccion_id,
                "tipo_documento": tx.tipo_documento.value,
                "total": tx.total,
            },
        )

    # --- Depósitos ---

    def registrar_deposito(self, caja_id: int, datos: DatosDeposito) -> Transaccion:
        """Registra un depósito del efectivo de la caja al banco.

        Raises:
            InvalidStateError: la caja está cerrada.
            BusinessRuleError: política de calendario o monto mayor al efectivo.
        """
        caja = self._caja_abierta(caja_id, "registrar depósito")
        self._validar_politica(caja_id)

        monto = round_cents(to_money(datos.monto, "monto"))
        totales = compute_totals(self._store.fetch_transactions(caja_id), caja)
        if monto > totales.efectivo:
            self._rechazar(
                caja_id,
                "saldo_insuficiente",
                f"El depósito ({format_money(monto)}) supera el efectivo disponible "
                f"en caja ({format_money(totales.efectivo)})",
                {"monto": monto, "efectivo": totales.efectivo},
            )

        deposito = Transaccion(
            fecha=datos.fecha,
            tipo_documento=TipoDocumento.DEPOSITO,
            numero="DEPOSITO",
            total=monto,
            caja_id=caja_id,
            banco=datos.banco.strip(),
        )
        deposito = replace(deposito, id=self._store.insert_transaction(deposito))

        self._logger.log_transaccion_registrada(caja_id, deposito, "deposito")
        self._auditar(
            AccionBitacora.REGISTRAR_DEPOSITO,
            caja_id,
            {"caja_id": caja_id, "monto": monto, "banco": deposito.banco},
        )
        return deposito

    # --- Retenciones ---

    def guardar_retencion(
        self,
        caja_id: int,
        transaccion_id: int,
        fecha: date,
        numero: str,
        items: Sequence[ItemRetencion],
    ) -> Retencion:
        """Crea o reemplaza la retención de un gasto.

        Raises:
            InvalidStateError: la caja está cerrada.
            ValidationError: depósito, gasto sin factura (legalizado o no),
                             número vacío o ítems de retención inválidos.
        """
        self._caja_abierta(caja_id, "guardar retención")
        if not numero or not numero.strip():
            raise ValidationError("numero_retencion", "el número de retención es obligatorio")

        tx = self._buscar(self._store.fetch_transactions(caja_id), transaccion_id)
        if tx.es_deposito:
            raise ValidationError("transaccion_id", "un depósito no lleva retención")
        if tx.parent_id is not None:
            raise ValidationError(
                "transaccion_id", f"el gasto {transaccion_id} está legalizado; retenga la factura {tx.parent_id}"
            )
        if tx.tipo_documento == TipoDocumento.SIN_FACTURA:
            raise ValidationError(
                "transaccion_id", f"el gasto {transaccion_id} no tiene factura; legalícelo antes de retener"
            )

        resultado = compute_withholding(tx.items, items)
        retencion = replace(
            resultado.como_retencion(fecha, numero.strip()),
            transaccion_id=transaccion_id,
            recaudada=tx.retencion.recaudada if tx.retencion else False,
        )
        retencion = replace(
            retencion,
            id=self._store.upsert_withholding(transaccion_id, retencion, list(resultado.items)),
        )

        accion = "editar" if tx.retencion else "crear"
        self._logger.log_retencion_guardada(transaccion_id, retencion.total_retenido, accion)
        self._auditar(
            AccionBitacora.EDITAR_RETENCION if tx.retencion else AccionBitacora.CREAR_RETENCION,
            caja_id,
            {
                "transaccion_id": transaccion_id,
                "numero_retencion": retencion.numero,
                "total_fuente": retencion.total_fuente,
                "total_iva": retencion.total_iva,
                "total_retenido": retencion.total_retenido,
            },
        )
        return retencion

    def eliminar_retencion(self, caja_id: int, transaccion_id: int) -> None:
        """Elimina la retención de un gasto y desbloquea sus líneas."""
        self._caja_abierta(caja_id, "eliminar retención")
        tx = self._buscar(self._store.fetch_transactions(caja_id), transaccion_id)
        if tx.retencion is None or tx.retencion.id is None:
            raise ValidationError("transaccion_id", f"la transacción {transaccion_id} no tiene retención")

        self._store.delete_withholding(tx.retencion.id)
        self._logger.log_retencion_guardada(transaccion_id, tx.retencion.total_retenido, "eliminar")
        self._auditar(
            AccionBitacora.ELIMINAR_RETENCION,
            caja_id,
            {
                "transaccion_id": transaccion_id,
                "numero_retencion": tx.retencion.numero,
                "total_retenido": tx.retencion.total_retenido,
            },
        )

    def recaudacion(self, caja_id: int) -> RecaudacionRetenciones:
        """Control de recaudación de los comprobantes de retención de la caja."""
        return RecaudacionRetenciones.desde_transacciones(
            self._store, self._store.fetch_transactions(caja_id), self._logger, caja_id
        )

    # --- Legalización ---

    def legalizar(self, caja_id: int, ids: Sequence[int], datos: DatosFactura) -> Transaccion:
        """Agrupa gastos sin factura bajo una factura de justificación."""
        self._caja_abierta(caja_id, "legalizar gastos")
        plan = legalize(caja_id, self._store.fetch_transactions(caja_id), ids, datos)
        return ejecutar_plan(plan, self._store, self._logger)

    # --- Arqueos y cierre ---

    def arqueo_control(
        self,
        caja_id: int,
        conteo: Sequence[ConteoDenominacion],
        observacion: str | None = None,
    ) -> ResultadoArqueo:
        """Conteo de control durante el ciclo. Solo registra; no bloquea."""
        caja = self._caja_abierta(caja_id, "arqueo de control")
        totales = compute_totals(self._store.fetch_transactions(caja_id), caja)
        arqueo = reconcile_count(conteo, totales.efectivo, catalogo=self._config.catalogo)

        self._logger.log_arqueo(caja_id, "control", arqueo)
        self._auditar(
            AccionBitacora.ARQUEO_CONTROL,
            caja_id,
            {
                "caja_id": caja_id,
                "sucursal": caja.sucursal,
                "efectivo_esperado": totales.efectivo,
                "arqueo": {"items": arqueo.desglose(), "total_contado": arqueo.total_contado},
                "diferencia": arqueo.diferencia,
                "coincide": arqueo.coincide,
                "observacion": observacion or None,
            },
        )
        return arqueo

    def cerrar(
        self,
        caja_id: int,
        conteo: Sequence[ConteoDenominacion],
        datos: DatosReposicion,
    ) -> Caja:
        """Cierra la caja y registra el cheque de reposición.

        El cambio de estado y la entrada de bitácora se escriben como una
        unidad: si la bitácora falla, la caja vuelve a quedar abierta.

        Raises:
            InvalidStateError: la caja ya está cerrada.
            ValidationError: fecha de cierre anterior a la apertura.
            BusinessRuleError: legalizaciones pendientes o arqueo que no cuadra.
            ConsistencyError: falló la escritura y se revirtió.
        """
        caja = self._caja_abierta(caja_id, "cerrar")
        if datos.fecha_cierre < caja.fecha_apertura:
            raise ValidationError(
                "fecha_cierre",
                f"{datos.fecha_cierre} es anterior a la apertura ({caja.fecha_apertura})",
            )

        transacciones = self._store.fetch_transactions(caja_id)
        evaluacion = can_close(caja, transacciones, conteo, self._config.catalogo)
        totales = evaluacion.totales
        arqueo = evaluacion.arqueo
        self._logger.log_arqueo(caja_id, "cierre", arqueo)

        if evaluacion.pendientes:
            self._rechazar(
                caja_id,
                "legalizaciones_pendientes",
                f"No se puede cerrar: {len(evaluacion.pendientes)} gasto(s) sin factura "
                f"pendientes de legalizar",
                {"pendientes": list(evaluacion.pendientes)},
            )
        if not arqueo.coincide:
            self._rechazar(
                caja_id,
                "arqueo_cierre",
                _motivo_arqueo(arqueo, "el efectivo esperado"),
                {
                    "efectivo_esperado": totales.efectivo,
                    "total_contado": arqueo.total_contado,
                    "diferencia": arqueo.diferencia,
                },
            )

        patch = {
            "estado": EstadoCaja.CERRADA,
            "fecha_cierre": datos.fecha_cierre,
            "monto_reposicion": totales.neto,
            "numero_cheque_reposicion": datos.numero_cheque.strip(),
            "banco_reposicion": datos.banco.strip(),
        }
        reapertura = {
            "estado": EstadoCaja.ABIERTA,
            "fecha_cierre": None,
            "monto_reposicion": None,
            "numero_cheque_reposicion": "",
            "banco_reposicion": "",
        }
        entrada = EntradaBitacora(
            accion=AccionBitacora.CIERRE_CAJA,
            caja_id=caja_id,
            detalle=serializar_detalle(
                {
                    "caja_id": caja_id,
                    "sucursal": caja.sucursal,
                    "monto_inicial": caja.monto_inicial,
                    "gastos_netos": totales.neto,
                    "efectivo_esperado": totales.efectivo,
                    "arqueo_cierre": {"items": arqueo.desglose(), "total_contado": arqueo.total_contado},
                    "numero_cheque": patch["numero_cheque_reposicion"],
                    "banco": patch["banco_reposicion"],
                }
            ),
        )

        escritura = EscrituraCompensada("cierre_caja", self._logger)
        escritura.paso(
            "cerrar_caja",
            lambda: self._store.update_box_state(caja_id, patch),
            lambda _: self._store.update_box_state(caja_id, reapertura),
        )
        escritura.paso("bitacora_cierre", lambda: self._store.append_audit_entry(entrada))

        cerrada = replace(caja, **patch)
        self._logger.log_caja_cerrada(cerrada)
        return cerrada

    # --- Consultas ---

    def resumen(self, caja_id: int) -> Totales:
        """Totales recalculados desde el almacenamiento."""
        caja = self._store.fetch_caja(caja_id)
        return compute_totals(self._store.fetch_transactions(caja_id), caja)

    def alerta_saldo(self, caja_id: int) -> AlertaSaldo:
        caja = self._store.fetch_caja(caja_id)
        totales = compute_totals(self._store.fetch_transactions(caja_id), caja)
        return evaluar_alerta_saldo(totales, caja, self._config)

    def evaluar_cierre(
        self, caja_id: int, conteo: Sequence[ConteoDenominacion] | None = None
    ) -> ResultadoCierre:
        """can_close con datos frescos del almacenamiento."""
        caja = self._store.fetch_caja(caja_id)
        return can_close(caja, self._store.fetch_transactions(caja_id), conteo, self._config.catalogo)

    # --- Internos ---

    def _caja_abierta(self, caja_id: int, operacion: str) -> Caja:
        caja = self._store.fetch_caja(caja_id)
        if not caja.esta_abierta:
            raise InvalidStateError(f"caja {caja_id}", caja.estado.value, operacion)
        return caja

    def _validar_politica(self, caja_id: int) -> None:
        evaluacion = self._politica.evaluar(self._reloj())
        if evaluacion.bloqueado:
            self._rechazar(caja_id, "cierre_mensual", evaluacion.aviso or "Movimientos bloqueados")
        if evaluacion.aviso:
            self._logger.log_aviso(caja_id, evaluacion.aviso)

    def _validar_gasto(self, tx: Transaccion) -> None:
        if tx.es_deposito:
            raise ValidationError("tipo_documento", "use registrar_deposito para los depósitos")
        if not tx.items:
            raise ValidationError("items", "el gasto necesita al menos un ítem")
        for item in tx.items:
            esperado = tax_for(item.monto, item.con_iva, self._config.tasa_iva)
            if item.monto_iva != esperado:
                raise ValidationError(
                    "item.monto_iva",
                    f"'{item.nombre}': IVA {item.monto_iva} no corresponde a "
                    f"{item.monto} × {self._config.tasa_iva} = {esperado}",
                )
        if tx.total != tx.total_calculado:
            raise ValidationError(
                "total",
                f"el total {format_money(tx.total)} no coincide con la suma de los ítems "
                f"{format_money(tx.total_calculado)}",
            )

    def _validar_fondos(self, caja: Caja, disponible: Decimal, total: Decimal) -> None:
        """Saldo suficiente y reserva de seguridad."""
        if total > disponible:
            self._rechazar(
                caja.id,
                "saldo_insuficiente",
                f"El gasto ({format_money(total)}) supera el efectivo disponible "
                f"en caja ({format_money(disponible)})",
                {"total": total, "disponible": disponible},
            )

        pct = self._config.porcentaje_reserva
        reserva = round_cents(caja.monto_inicial * pct / Decimal(100))
        proyectado = disponible - total
        if proyectado < reserva:
            self._rechazar(
                caja.id,
                "reserva_seguridad",
                f"La caja debe mantener un mínimo del {pct}% ({format_money(reserva)}) de su "
                f"monto inicial ({format_money(caja.monto_inicial)}). "
                f"El saldo restante sería {format_money(proyectado)}",
                {
                    "porcentaje_reserva": pct,
                    "reserva": reserva,
                    "monto_inicial": caja.monto_inicial,
                    "saldo_proyectado": proyectado,
                },
            )

    def _avisar_saldo_bajo(self, caja: Caja, transacciones: Sequence[Transaccion]) -> None:
        alerta = evaluar_alerta_saldo(compute_totals(transacciones, caja), caja, self._config)
        if alerta.saldo_bajo:
            self._logger.log_aviso(
                caja.id,
                f"Saldo bajo: queda {alerta.porcentaje_disponible}% del efectivo "
                f"(umbral {alerta.umbral}%)",
            )

    def _rechazar(self, caja_id: int | None, regla: str, mensaje: str, cifras: dict | None = None) -> None:
        self._logger.log_regla_incumplida(caja_id, regla, mensaje)
        raise BusinessRuleError(regla, mensaje, cifras)

    def _auditar(self, accion: AccionBitacora, caja_id: int | None, detalle: dict) -> None:
        registrar_auditoria(self._store, self._logger, accion, caja_id, detalle)

    @staticmethod
    def _buscar(transacciones: Sequence[Transaccion], transaccion_id: int) -> Transaccion:
        for tx in transacciones:
            if tx.id == transaccion_id:
                return tx
        raise ValidationError("transaccion_id", f"la transacción {transaccion_id} no existe en la caja")


def _cabecera(tx: Transaccion) -> dict:
    return {
        "fecha": tx.fecha,
        "tipo_documento": tx.tipo_documento,
        "numero": tx.numero,
        "total": tx.total,
        "proveedor": tx.proveedor,
    }


def _motivo_arqueo(arqueo: ResultadoArqueo, contra: str) -> str:
    if arqueo.estado == EstadoArqueo.VACIO:
        return f"El arqueo está vacío; cuente el efectivo ({format_money(arqueo.monto_esperado)})"
    return (
        f"El arqueo ({format_money(arqueo.total_contado)}) no coincide con {contra} "
        f"({format_money(arqueo.monto_esperado)}). Diferencia: {format_money(arqueo.diferencia)}"
    )
