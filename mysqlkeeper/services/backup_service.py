"""
Servicio principal que orquesta los backups
"""
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..config import Config
from ..exceptions import BackupBusyError, BackupError
from ..factories.strategy_factory import BackupStrategyFactory
from ..logger import LoggerService
from ..models import BackupRequest, BackupResult, BackupSettings, StrategyHint
from ..repositories.config_repository import ConfigRepository
from ..strategies.base_strategy import BackupStrategy
from .cleanup_service import CleanupService
from .progress import ProgressObserver, ProgressReporter


def backup_file_name(database: str, when: Optional[datetime] = None) -> str:
    """Nombre convencional del archivo: BACKUP_<db>_<YYYYMMDD_HHMMSS>.zip"""
    timestamp = (when or datetime.now()).strftime('%Y%m%d_%H%M%S')
    return f"{Config.BACKUP_FILE_PREFIX}{database}_{timestamp}{Config.BACKUP_FILE_SUFFIX}"


class BackupService:
    """Servicio principal que orquesta los backups (un solo backup a la vez)"""

    def __init__(self, config_repo: Optional[ConfigRepository] = None,
                 cleanup_service: Optional[CleanupService] = None,
                 strategy_factory=BackupStrategyFactory):
        """
        Inicializa el servicio de backup

        Args:
            config_repo: Repositorio de configuración (opcional)
            cleanup_service: Servicio de limpieza (opcional)
            strategy_factory: Factory que resuelve la estrategia de cada petición
        """
        self.config_repo = config_repo
        self.logger = LoggerService.get_logger("BackupService")
        self.strategy_factory = strategy_factory

        # Cargar configuración
        self.backup_settings = config_repo.get_backup_settings() if config_repo else BackupSettings()

        # Servicio de limpieza
        self.cleanup_service = cleanup_service or CleanupService()

        # Compuerta single-flight y worker dedicado
        self._gate = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="backup-worker")

    @property
    def is_running(self) -> bool:
        """True mientras hay un backup en ejecución"""
        return self._gate.locked()

    def is_external_tool_available(self) -> bool:
        """Indica si mysqldump está disponible en el sistema"""
        return self.strategy_factory.create('mysqldump', **self._mysqldump_options()).is_available()

    def submit_backup(self, request: BackupRequest,
                      observer: Optional[ProgressObserver] = None) -> Future:
        """
        Lanza un backup en el worker sin bloquear al llamador

        Args:
            request: Petición de backup
            observer: Observador de progreso (opcional)

        Returns:
            Future con el BackupResult

        Raises:
            BackupBusyError: si ya hay un backup en ejecución (no se hace ningún trabajo)
        """
        if not self._gate.acquire(blocking=False):
            raise BackupBusyError("Ya hay un backup en ejecución")
        try:
            return self._executor.submit(self._run, request, observer)
        except RuntimeError:
            # Executor detenido: la tarea nunca correrá
            self._gate.release()
            raise

    def backup(self, request: BackupRequest,
               observer: Optional[ProgressObserver] = None) -> BackupResult:
        """
        Ejecuta un backup y espera su resultado

        Args:
            request: Petición de backup
            observer: Observador de progreso (opcional)

        Returns:
            Resultado del backup (un único resultado por petición)
        """
        try:
            future = self.submit_backup(request, observer)
        except BackupBusyError as e:
            self.logger.warning(f"Backup rechazado para {request.database}: {e}")
            return BackupResult(
                database_name=request.database,
                success=False,
                error=str(e),
                error_type=type(e).__name__
            )
        return future.result()

    def backup_configured_database(self, output_dir: Optional[Path] = None,
                                   strategy: Optional[StrategyHint] = None,
                                   observer: Optional[ProgressObserver] = None) -> BackupResult:
        """
        Realiza backup de la base de datos configurada con el nombre convencional

        Args:
            output_dir: Directorio destino (por defecto el configurado)
            strategy: Estrategia (por defecto la configurada)
            observer: Observador de progreso (opcional)

        Returns:
            Resultado del backup
        """
        if self.config_repo is None:
            raise BackupError("No hay configuración de base de datos")

        db_config = self.config_repo.get_database()
        backup_dir = Path(output_dir) if output_dir else self.backup_settings.backup_dir
        request = db_config.to_request(
            output_path=backup_dir / backup_file_name(db_config.database),
            strategy=strategy or self.backup_settings.strategy
        )
        self.logger.info("=" * 70)
        self.logger.info(f"BACKUP DE {db_config.database} -> {request.output_path}")
        self.logger.info("=" * 70)
        return self.backup(request, observer)

    def _run(self, request: BackupRequest, observer: Optional[ProgressObserver]) -> BackupResult:
        """Cuerpo del worker: resuelve la estrategia y la ejecuta; libera la compuerta al final"""
        progress = ProgressReporter(observer)
        try:
            progress.report(0, "Preparando backup...")
            try:
                strategy = self._resolve_strategy(request.strategy)
            except BackupError as e:
                self.logger.error(f"No se pudo seleccionar la estrategia: {e}")
                progress.fail(str(e))
                return BackupResult(
                    database_name=request.database,
                    success=False,
                    error=str(e),
                    error_type=type(e).__name__
                )

            self.logger.info(f"Estrategia seleccionada: {strategy.name}")
            return strategy.execute_backup(request, observer)

        except Exception as e:
            self.logger.error(f"Error inesperado durante el backup: {e}", exc_info=True)
            progress.fail(str(e))
            return BackupResult(
                database_name=request.database,
                success=False,
                error=str(e),
                error_type=type(e).__name__
            )
        finally:
            self._gate.release()

    def _resolve_strategy(self, hint: StrategyHint) -> BackupStrategy:
        return self.strategy_factory.resolve(
            hint,
            mysqldump_options=self._mysqldump_options(),
            builtin_options={'unknown_value_policy': self.backup_settings.unknown_value_policy}
        )

    @staticmethod
    def _mysqldump_options() -> dict:
        return {'tool': Config.MYSQLDUMP_BIN, 'timeout': Config.MYSQLDUMP_TIMEOUT}

    def shutdown(self):
        """Detiene el worker de backup y el de limpieza"""
        self._executor.shutdown(wait=True)
        self.cleanup_service.shutdown()
