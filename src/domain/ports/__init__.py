"""
Puertos (interfaces) del dominio.

Los puertos definen QUÉ necesita el núcleo, sin decir CÓMO se implementa.
Cada puerto tiene uno o más adaptadores que lo implementan.

Uso:
    from src.domain.ports import LedgerStore, ProcessLogger, ReportWriter
"""

from src.domain.ports.ledger_store import LedgerStore
from src.domain.ports.politica_transacciones import EvaluacionPolitica, PoliticaTransacciones
from src.domain.ports.process_logger import ProcessLogger
from src.domain.ports.report_writer import ReportWriter

__all__ = [
    "EvaluacionPolitica",
    "LedgerStore",
    "PoliticaTransacciones",
    "ProcessLogger",
    "ReportWriter",
]
