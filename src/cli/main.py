"""
Punto de entrada CLI: caja-chica.

Uso:
    # Totales, alerta de saldo y si la caja se puede cerrar
    caja-chica resumen --db /ruta/caja.db --caja 3

    # Reporte Excel de la caja
    caja-chica reporte --db /ruta/caja.db --caja 3 -o /ruta/salida

    # Sin -o, genera el Excel en el directorio de la base
    caja-chica reporte --db /ruta/caja.db --caja 3

Este módulo es el ÚNICO lugar donde se ensamblan los componentes:
- Crea las instancias concretas (SqliteLedgerStore, ExcelWriter, etc.)
- Las inyecta en CicloCaja.
- Ejecuta el comando.

No contiene lógica de negocio: solo "fontanería" (wiring).
"""

import argparse
import logging
import sys
from pathlib import Path

from src.adapters.output.loggers.console_logger import ConsoleLogger
from src.adapters.output.writers.excel_writer import ExcelWriter
from src.adapters.persistence.sqlite_store import SqliteLedgerStore
from src.domain.exceptions import CajaChicaError
from src.domain.services.ciclo_caja import CicloCaja
from src.domain.shared.money import format_money
from src.infrastructure.configuracion import cargar_configuracion


def main(argv: list[str] | None = None) -> int:
    """Punto de entrada principal del CLI."""
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    db_path = Path(args.db)
    if not db_path.is_file():
        print(f"❌ La base no existe: {db_path}")
        return 1

    # --- Ensamblar componentes ---
    # Si quisiéramos cambiar el almacenamiento (ej: un servicio remoto),
    # solo cambiaríamos esta sección. El dominio no se toca.
    logger = ConsoleLogger()
    try:
        with SqliteLedgerStore(db_path) as store:
            ciclo = CicloCaja(store, logger, config=cargar_configuracion(store))

            if args.comando == "resumen":
                _resumen(ciclo, args.caja)
            else:
                output_dir = Path(args.output_dir) if args.output_dir else db_path.parent
                _reporte(ciclo, store, args.caja, output_dir)
    except CajaChicaError as e:
        logger.log_error(args.comando, e)
        logger.print_summary()
        return 1

    return 0


def _resumen(ciclo: CicloCaja, caja_id: int) -> None:
    totales = ciclo.resumen(caja_id)
    alerta = ciclo.alerta_saldo(caja_id)
    cierre = ciclo.evaluar_cierre(caja_id)

    print("=" * 60)
    print(f"CAJA CHICA #{caja_id}")
    print("=" * 60)
    print(f"  Facturado:          {format_money(totales.facturado)}")
    print(f"  Retención fuente:   {format_money(totales.fuente)}")
    print(f"  Retención IVA:      {format_money(totales.iva)}")
    print(f"  Total retenido:     {format_money(totales.total_retenido)}")
    print(f"  Gastos netos:       {format_money(totales.neto)}")
    print(f"  Depósitos:          {format_money(totales.total_depositos)}")
    print(f"  Efectivo esperado:  {format_money(totales.efectivo)}")
    print(f"  Disponible:         {alerta.porcentaje_disponible}%")
    if alerta.saldo_bajo:
        print(f"\n  ⚠️  Saldo bajo: por debajo del {alerta.umbral}%")

    if cierre.permitido:
        print("\n  ✅ Lista para cierre (falta el arqueo)")
    else:
        print("\n  ⛔ No se puede cerrar:")
        for motivo in cierre.motivos:
            print(f"    - {motivo}")
    print("=" * 60)


def _reporte(ciclo: CicloCaja, store: SqliteLedgerStore, caja_id: int, output_dir: Path) -> None:
    caja = store.fetch_caja(caja_id)
    transacciones = store.fetch_transactions(caja_id)
    totales = ciclo.resumen(caja_id)

    output_file = output_dir / f"caja_{caja_id}_{caja.sucursal.replace(' ', '_').lower()}.xlsx"
    ruta = ExcelWriter().write_report(caja, transacciones, totales, output_file)
    print(f"\n📁 Reporte generado: {ruta}")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parsea los argumentos de línea de comandos."""
    parser = argparse.ArgumentParser(
        prog="caja-chica",
        description="Consulta y reporte de cajas chicas",
        epilog="Ejemplo: caja-chica reporte --db caja.db --caja 3 -o /ruta/salida",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Muestra el log de SQLite")

    subparsers = parser.add_subparsers(dest="comando", required=True)

    for nombre, ayuda in (
        ("resumen", "Totales, alerta de saldo y estado de cierre"),
        ("reporte", "Genera el reporte Excel de la caja"),
    ):
        sub = subparsers.add_parser(nombre, help=ayuda)
        sub.add_argument("--db", required=True, help="Ruta a la base SQLite")
        sub.add_argument("--caja", required=True, type=int, help="Id de la caja")
        if nombre == "reporte":
            sub.add_argument(
                "-o",
                "--output-dir",
                dest="output_dir",
                help="Directorio de salida para el Excel. "
                "Si no se especifica, se usa el directorio de la base.",
            )

    return parser.parse_args(argv)


if __name__ == "__main__":
    sys.exit(main())
