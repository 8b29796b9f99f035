"""
Estrategia base para backups (Strategy Pattern)
"""
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional
import time

from ..exceptions import BackupError, BackupIOError
from ..logger import LoggerService
from ..models import BackupRequest, BackupResult
from ..services.archive_service import ArchiveService
from ..services.progress import ProgressObserver, ProgressReporter


class BackupStrategy(ABC):
    """Interfaz abstracta para estrategias de backup (Open/Closed Principle)"""

    name = "base"

    def __init__(self, archive_service: Optional[ArchiveService] = None):
        """
        Inicializa la estrategia

        Args:
            archive_service: Servicio de empaquetado (opcional)
        """
        self.logger = LoggerService.get_logger(self.__class__.__name__)
        self.archive_service = archive_service or ArchiveService()

    @abstractmethod
    def backup(self, request: BackupRequest, progress: ProgressReporter) -> Path:
        """
        Ejecuta el backup de la base de datos

        Args:
            request: Petición de backup
            progress: Reporter de progreso

        Returns:
            Ruta del archivo ZIP generado

        Raises:
            BackupError: ante cualquier fallo (el backup se aborta completo)
        """
        pass

    def execute_backup(self, request: BackupRequest,
                       observer: Optional[ProgressObserver] = None) -> BackupResult:
        """
        Template method para ejecutar backup con medición de tiempo

        Args:
            request: Petición de backup
            observer: Observador de progreso (opcional)

        Returns:
            Resultado del backup
        """
        progress = ProgressReporter(observer)
        self.logger.info(f"Iniciando backup de {request.database} ({self.name})...")
        start_time = time.time()

        try:
            output_file = self.backup(request, progress)
            duration = time.time() - start_time
            file_size = output_file.stat().st_size / (1024 * 1024)  # MB
            self.logger.info(
                f"Backup exitoso: {output_file.name} "
                f"({file_size:.2f} MB, {duration:.2f}s)"
            )
            return BackupResult(
                database_name=request.database,
                success=True,
                output_file=str(output_file),
                duration_seconds=duration,
                strategy=self.name
            )

        except BackupError as e:
            return self._failure(request, progress, e, start_time)
        except OSError as e:
            return self._failure(request, progress, BackupIOError(str(e)), start_time)

    def _failure(self, request: BackupRequest, progress: ProgressReporter,
                 error: BackupError, start_time: float) -> BackupResult:
        duration = time.time() - start_time
        self.logger.error(f"Backup fallido ({type(error).__name__}): {error}")
        progress.fail(str(error))
        return BackupResult(
            database_name=request.database,
            success=False,
            error=str(error),
            error_type=type(error).__name__,
            duration_seconds=duration,
            strategy=self.name
        )

    @staticmethod
    def _ensure_output_dir(output_path: Path):
        """Crea el directorio de salida si no existe"""
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise BackupIOError(f"Error al crear el directorio de salida: {e}") from e
