"""
Adaptador de salida: Escritor de Excel.

Genera el reporte de una caja con 3 hojas:
- Hoja 1 (Resumen): datos de la caja y totales (facturado, retenido,
  neto, depósitos, efectivo).
- Hoja 2 (Transacciones): cada transacción principal y los gastos
  legalizados debajo de su factura, con subtotal, IVA y retención.
- Hoja 3 (Retenciones): una fila por comprobante de retención.

Los montos se escriben como float solo al final, en la celda: los
cálculos ya se hicieron con Decimal en el dominio.
"""

from pathlib import Path

import pandas as pd

from src.domain.exceptions import OutputError
from src.domain.models.caja import Caja
from src.domain.models.totales import Totales
from src.domain.models.transaccion import Transaccion
from src.domain.ports.report_writer import ReportWriter
from src.domain.shared.money import CERO, round_cents

ETIQUETAS_DOCUMENTO = {
    "factura": "Factura",
    "nota_venta": "Nota de venta",
    "liquidacion_compra": "Liquidación de compra",
    "sin_factura": "Sin factura",
    "deposito": "Depósito",
}


class ExcelWriter(ReportWriter):
    """Genera el reporte Excel de una caja con formato estandarizado."""

    def write_report(
        self,
        caja: Caja,
        transacciones: list[Transaccion],
        totales: Totales,
        output_path: Path,
    ) -> Path:
        """Escribe el reporte de una caja.

        Args:
            caja: Caja reportada (abierta o cerrada).
            transacciones: Todas sus transacciones, incluidos los gastos legalizados.
            totales: Totales ya calculados por el dominio.
            output_path: Ruta donde crear el archivo. Si no termina en .xlsx,
                        se le agrega la extensión.

        Returns:
            Ruta del archivo creado.
        """
        # Asegurar extensión .xlsx
        if output_path.suffix.lower() != ".xlsx":
            output_path = output_path.with_suffix(".xlsx")

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            self._escribir_excel(caja, transacciones, totales, output_path)
        except Exception as e:
            raise OutputError(str(output_path), str(e))

        return output_path

    # =================================================================
    # MÉTODOS PRIVADOS: Construcción de hojas
    # =================================================================

    def _filas_resumen(self, caja: Caja, totales: Totales) -> list[dict]:
        filas = [
            ("Caja", caja.id),
            ("Sucursal", caja.sucursal),
            ("Responsable", caja.responsable),
            ("Estado", caja.estado.value),
            ("Fecha apertura", caja.fecha_apertura.strftime("%d/%m/%Y")),
            ("Fecha cierre", caja.fecha_cierre.strftime("%d/%m/%Y") if caja.fecha_cierre else ""),
            ("Monto inicial", float(caja.monto_inicial)),
            ("Total facturado", float(totales.facturado)),
            ("Retención fuente", float(totales.fuente)),
            ("Retención IVA", float(totales.iva)),
            ("Total retenido", float(totales.total_retenido)),
            ("Gastos netos", float(totales.neto)),
            ("Depósitos", float(totales.total_depositos)),
            ("Efectivo esperado", float(totales.efectivo)),
        ]
        if caja.monto_reposicion is not None:
            filas.append(("Reposición", float(caja.monto_reposicion)))
            filas.append(("Cheque", caja.numero_cheque_reposicion))
            filas.append(("Banco", caja.banco_reposicion))
        return [{"Concepto": concepto, "Valor": valor} for concepto, valor in filas]

    def _filas_transacciones(self, transacciones: list[Transaccion]) -> list[dict]:
        """Principales en orden de fecha; cada factura de justificación
        seguida de los gastos que legaliza."""
        hijos: dict[int, list[Transaccion]] = {}
        for tx in transacciones:
            if tx.parent_id is not None:
                hijos.setdefault(tx.parent_id, []).append(tx)

        filas = []
        principales = sorted((t for t in transacciones if t.es_principal), key=lambda t: (t.fecha, t.id or 0))
        for tx in principales:
            filas.append(self._fila_transaccion(tx, ""))
            for hijo in hijos.get(tx.id, []):
                filas.append(self._fila_transaccion(hijo, f"Legalizado por {tx.numero}"))
        return filas

    def _fila_transaccion(self, tx: Transaccion, nota: str) -> dict:
        subtotal = round_cents(sum((i.monto for i in tx.items), CERO))
        iva = round_cents(sum((i.monto_iva for i in tx.items), CERO))
        retenido = tx.retencion.total_retenido if tx.retencion else CERO
        return {
            "ID": tx.id,
            "Fecha": tx.fecha.strftime("%d/%m/%Y"),
            "Documento": ETIQUETAS_DOCUMENTO.get(tx.tipo_documento.value, tx.tipo_documento.value),
            "Número": tx.numero,
            "Proveedor": tx.proveedor.nombre if tx.proveedor else (tx.banco or ""),
            "Detalle": ", ".join(i.nombre for i in tx.items),
            "Subtotal": float(subtotal),
            "IVA": float(iva),
            "Total": float(tx.total),
            "Retenido": float(retenido),
            "Neto": float(tx.total - retenido),
            "Nota": nota,
        }

    def _filas_retenciones(self, transacciones: list[Transaccion]) -> list[dict]:
        filas = []
        for tx in transacciones:
            ret = tx.retencion
            if ret is None:
                continue
            filas.append(
                {
                    "Número retención": ret.numero,
                    "Fecha": ret.fecha.strftime("%d/%m/%Y"),
                    "Factura": tx.numero,
                    "Proveedor": tx.proveedor.nombre if tx.proveedor else "Gasto General",
                    "RUC": tx.proveedor.ruc if tx.proveedor and tx.proveedor.ruc else "---",
                    "Fuente": float(ret.total_fuente),
                    "IVA": float(ret.total_iva),
                    "Total retenido": float(ret.total_retenido),
                    "Recaudada": "Sí" if ret.recaudada else "No",
                }
            )
        return filas

    # =================================================================
    # MÉTODO PRIVADO: Generación del Excel
    # =================================================================

    def _escribir_excel(
        self,
        caja: Caja,
        transacciones: list[Transaccion],
        totales: Totales,
        output_path: Path,
    ) -> None:
        df_resumen = pd.DataFrame(self._filas_resumen(caja, totales))
        df_transacciones = pd.DataFrame(
            self._filas_transacciones(transacciones),
            columns=[
                "ID", "Fecha", "Documento", "Número", "Proveedor", "Detalle",
                "Subtotal", "IVA", "Total", "Retenido", "Neto", "Nota",
            ],
        )
        df_retenciones = pd.DataFrame(
            self._filas_retenciones(transacciones),
            columns=[
                "Número retención", "Fecha", "Factura", "Proveedor", "RUC",
                "Fuente", "IVA", "Total retenido", "Recaudada",
            ],
        )

        # --- Escribir Excel con xlsxwriter ---
        with pd.ExcelWriter(output_path, engine="xlsxwriter") as writer:
            df_resumen.to_excel(writer, index=False, sheet_name="Resumen")
            df_transacciones.to_excel(writer, index=False, sheet_name="Transacciones")
            df_retenciones.to_excel(writer, index=False, sheet_name="Retenciones")

            # --- Aplicar formato ---
            workbook = writer.book
            ws_resumen = writer.sheets["Resumen"]
            ws_transacciones = writer.sheets["Transacciones"]
            ws_retenciones = writer.sheets["Retenciones"]

            # Formato para texto (mantener ceros iniciales en números de documento)
            text_format = workbook.add_format({"num_format": "@"})

            # Formato para montos (2 decimales con separador de miles)
            money_format = workbook.add_format({"num_format": "#,##0.00"})

            # --- Formato Hoja Resumen ---
            ws_resumen.set_column("A:A", 22)  # Concepto
            ws_resumen.set_column("B:B", 20, money_format)  # Valor

            # --- Formato Hoja Transacciones ---
            ws_transacciones.set_column("A:A", 6)  # ID
            ws_transacciones.set_column("B:B", 12)  # Fecha
            ws_transacciones.set_column("C:C", 20)  # Documento
            ws_transacciones.set_column("D:D", 20, text_format)  # Número
            ws_transacciones.set_column("E:E", 30)  # Proveedor
            ws_transacciones.set_column("F:F", 40)  # Detalle
            ws_transacciones.set_column("G:K", 14, money_format)  # Montos
            ws_transacciones.set_column("L:L", 28)  # Nota

            # --- Formato Hoja Retenciones ---
            ws_retenciones.set_column("A:A", 20, text_format)  # Número retención
            ws_retenciones.set_column("B:B", 12)  # Fecha
            ws_retenciones.set_column("C:C", 20, text_format)  # Factura
            ws_retenciones.set_column("D:D", 30)  # Proveedor
            ws_retenciones.set_column("E:E", 15, text_format)  # RUC
            ws_retenciones.set_column("F:H", 14, money_format)  # Montos
            ws_retenciones.set_column("I:I", 10)  # Recaudada
