"""
Reporte de progreso hacia un observador externo
"""
from typing import Callable, List, Optional

from ..logger import LoggerService
from ..models import ProgressEvent

ProgressObserver = Callable[[ProgressEvent], None]


class ProgressReporter:
    """Envía eventos de progreso al observador registrado (best effort)"""

    def __init__(self, observer: Optional[ProgressObserver] = None):
        """
        Inicializa el reporter

        Args:
            observer: Callable que recibe cada ProgressEvent (opcional)
        """
        self.observer = observer
        self.last_percent = 0
        self.logger = LoggerService.get_logger("Progress")

    def report(self, percent: int, status: str, current_table: Optional[str] = None):
        """
        Emite un evento de progreso

        Un observador que falla no afecta al backup: el error solo se registra.
        """
        event = ProgressEvent(percent=percent, status=status, current_table=current_table)
        self.last_percent = event.percent
        table_info = f" [{current_table}]" if current_table else ""
        self.logger.debug(f"{event.percent:3d}% {status}{table_info}")

        if self.observer is None:
            return
        try:
            self.observer(event)
        except Exception as e:
            self.logger.warning(f"El observador de progreso falló: {e}")

    def fail(self, message: str):
        """Emite el evento terminal de un backup fallido"""
        self.report(0, f"Backup fallido: {message}")


class ProgressRecorder:
    """Observador que guarda los eventos recibidos (útil para CLI y tests)"""

    def __init__(self):
        self.events: List[ProgressEvent] = []

    def __call__(self, event: ProgressEvent):
        self.events.append(event)

    @property
    def percents(self) -> List[int]:
        return [e.percent for e in self.events]
