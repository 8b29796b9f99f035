"""
Servicio de programación de tareas de backup
"""
import schedule
import time
import signal
import sys
from datetime import datetime
from ..exceptions import BackupError, ConfigError
from ..logger import LoggerService
from .backup_service import BackupService


class SchedulerService:
    """Servicio para programar y ejecutar backups automáticos"""

    def __init__(self, backup_service: BackupService, scheduler: schedule.Scheduler = None,
                 install_signal_handlers: bool = True):
        """
        Inicializa el servicio de programación

        Args:
            backup_service: Servicio de backup a ejecutar
            scheduler: Scheduler de la librería schedule (por defecto uno propio)
            install_signal_handlers: Registrar SIGINT/SIGTERM para shutdown graceful
        """
        self.backup_service = backup_service
        self.settings = backup_service.backup_settings
        self.scheduler = scheduler or schedule.Scheduler()
        self.logger = LoggerService.get_logger("SchedulerService")
        self.running = False

        # Registrar manejadores de señales para shutdown graceful
        if install_signal_handlers:
            signal.signal(signal.SIGINT, self._signal_handler)
            signal.signal(signal.SIGTERM, self._signal_handler)

    def configure(self):
        """Registra el trabajo según la frecuencia configurada (daily, weekly, monthly)"""
        self.scheduler.clear()
        at = self.settings.schedule

        if self.settings.frequency == 'weekly':
            self.scheduler.every().monday.at(at).do(self.run_backup_job)
        elif self.settings.frequency == 'monthly':
            # schedule no tiene periodo mensual: job diario que solo actúa el día 1
            self.scheduler.every().day.at(at).do(self._run_monthly_backup_job)
        else:
            self.scheduler.every().day.at(at).do(self.run_backup_job)

    def start(self, run_immediately: bool = False, poll_seconds: int = 60):
        """
        Inicia el programador de tareas

        Args:
            run_immediately: Si es True, ejecuta un backup inmediatamente al iniciar
            poll_seconds: Intervalo de revisión de trabajos pendientes
        """
        self.configure()

        self.logger.info("=" * 70)
        self.logger.info("SERVICIO DE BACKUP AUTOMÁTICO INICIADO")
        self.logger.info("=" * 70)
        self.logger.info(f"Frecuencia: {self.settings.frequency} a las {self.settings.schedule}")
        if self.settings.retention_days > 0:
            self.logger.info(f"Retención de backups: {self.settings.retention_days} días")
        else:
            self.logger.info("Retención de backups: sin límite")
        self.logger.info(f"Directorio de backups: {self.settings.backup_dir}")
        self.logger.info(f"Estrategia: {self.settings.strategy.value}")
        self.logger.info("-" * 70)
        self.logger.info(f"Próxima ejecución: {self.get_next_run()}")
        self.logger.info("Presiona Ctrl+C para detener el servicio")
        self.logger.info("=" * 70)

        # Ejecutar backup inmediatamente si se solicita
        if run_immediately:
            self.logger.info("Ejecutando backup inicial...")
            self.run_backup_job()

        # Loop principal
        self.running = True
        try:
            while self.running:
                self.scheduler.run_pending()
                time.sleep(poll_seconds)
        except KeyboardInterrupt:
            self._shutdown()

    def run_backup_job(self) -> bool:
        """
        Ejecuta el trabajo de backup programado seguido de la limpieza

        Returns:
            True si el backup fue exitoso
        """
        self.logger.info(f"Ejecutando backup programado a las {time.strftime('%Y-%m-%d %H:%M:%S')}")

        # Un error de configuración no debe detener el loop de schedule
        try:
            result = self.backup_service.backup_configured_database()
        except (BackupError, ConfigError, ValueError) as e:
            self.logger.error(f"Error crítico durante backup ({type(e).__name__}): {e}")
            return False

        if not result.success:
            if result.error_type == 'BackupBusyError':
                self.logger.warning("Ya hay un backup en curso, se omite esta ejecución")
            else:
                self.logger.warning(f"Backup programado fallido: {result.error}")
            return False

        self.logger.info(f"Backup programado completado: {result}")

        try:
            deleted = self.backup_service.cleanup_service.cleanup_old_backups(
                self.settings.backup_dir, self.settings.retention_days
            )
            self.logger.info(f"Backups antiguos eliminados: {deleted}")
        except BackupError as e:
            self.logger.error(f"Error durante limpieza: {e}")

        return True

    def _run_monthly_backup_job(self, today: datetime = None):
        """Solo ejecuta el backup el primer día del mes"""
        today = today or datetime.now()
        if today.day != 1:
            return None
        return self.run_backup_job()

    def _signal_handler(self, signum, frame):
        """
        Manejador de señales para shutdown graceful

        Args:
            signum: Número de señal
            frame: Frame actual
        """
        try:
            signal_name = signal.Signals(signum).name
        except ValueError:
            signal_name = str(signum)

        self.logger.info(f"Señal recibida: {signal_name}")
        self._shutdown()
        sys.exit(0)

    def _shutdown(self):
        """Detiene el servicio de forma ordenada"""
        self.logger.info("Deteniendo servicio de backup...")
        self.running = False
        self.scheduler.clear()
        self.logger.info("Servicio detenido correctamente")

    def get_next_run(self) -> str:
        """
        Obtiene la fecha de la próxima ejecución

        Returns:
            String con la fecha de la próxima ejecución
        """
        next_run = self.scheduler.next_run
        if next_run:
            return next_run.strftime('%Y-%m-%d %H:%M:%S')
        return "No programado"
