"""
Servicio para limpiar backups antiguos (Single Responsibility)
"""
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timedelta
from pathlib import Path
from typing import Union

from ..config import Config
from ..exceptions import BackupIOError, PolicyError
from ..logger import LoggerService
from ..models import RetentionPolicy


def is_backup_archive(name: str) -> bool:
    """True si el nombre sigue la convención BACKUP_*.zip"""
    return name.startswith(Config.BACKUP_FILE_PREFIX) and name.endswith(Config.BACKUP_FILE_SUFFIX)


class CleanupService:
    """Servicio para limpiar backups antiguos"""

    def __init__(self):
        """Inicializa el servicio de limpieza"""
        self.logger = LoggerService.get_logger("CleanupService")
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="cleanup-worker")

    def submit_cleanup(self, backup_dir: Union[str, Path], keep_days: int) -> Future:
        """
        Lanza la limpieza en un worker

        Args:
            backup_dir: Directorio de backups
            keep_days: Días de retención (<= 0 conserva todo)

        Returns:
            Future con la cantidad de archivos eliminados
        """
        policy = RetentionPolicy(directory=Path(backup_dir), keep_days=int(keep_days))
        return self._executor.submit(self._cleanup, policy)

    def cleanup_old_backups(self, backup_dir: Union[str, Path], keep_days: int) -> int:
        """
        Elimina backups BACKUP_*.zip más antiguos que keep_days

        Args:
            backup_dir: Directorio de backups
            keep_days: Días de retención (<= 0 conserva todo)

        Returns:
            Cantidad de archivos eliminados

        Raises:
            PolicyError: si el directorio no existe o no es un directorio
        """
        return self.submit_cleanup(backup_dir, keep_days).result()

    def _cleanup(self, policy: RetentionPolicy) -> int:
        if not policy.enabled:
            self.logger.info("Retención sin límite, no se elimina ningún backup")
            return 0

        backup_dir = policy.directory
        if not backup_dir.exists() or not backup_dir.is_dir():
            raise PolicyError(f"El directorio de backups {backup_dir} no existe o no es un directorio válido")

        now = datetime.now()
        cutoff_date = now - timedelta(days=policy.keep_days)
        deleted_count = 0

        try:
            entries = list(backup_dir.iterdir())
        except OSError as e:
            raise BackupIOError(f"Error al leer el directorio {backup_dir}: {e}") from e

        for backup_file in entries:
            if not is_backup_archive(backup_file.name):
                continue
            try:
                if not backup_file.is_file():
                    continue

                stat = backup_file.stat()
                file_mtime = datetime.fromtimestamp(stat.st_mtime)

                if file_mtime <= cutoff_date:
                    file_size = stat.st_size / (1024 * 1024)  # MB
                    backup_file.unlink()
                    deleted_count += 1
                    self.logger.info(
                        f"Eliminado backup antiguo: {backup_file.name} "
                        f"({file_size:.2f} MB, {(now - file_mtime).days} días)"
                    )
            except OSError as e:
                self.logger.error(f"Error al eliminar {backup_file.name}: {e}")

        if deleted_count > 0:
            self.logger.info(
                f"Limpieza completada: {deleted_count} archivo(s) eliminado(s)"
            )
        else:
            self.logger.info("No hay backups antiguos para eliminar")

        return deleted_count

    def get_backup_stats(self, backup_dir: Path) -> dict:
        """
        Obtiene estadísticas de los backups

        Args:
            backup_dir: Directorio de backups

        Returns:
            Diccionario con estadísticas
        """
        stats = {
            'total_files': 0,
            'total_size_mb': 0,
            'oldest_backup': None,
            'newest_backup': None
        }

        backup_dir = Path(backup_dir)
        if not backup_dir.is_dir():
            return stats

        try:
            files = [f for f in backup_dir.iterdir() if is_backup_archive(f.name) and f.is_file()]
            if not files:
                return stats

            mtimes = [f.stat().st_mtime for f in files]
            stats['total_files'] = len(files)
            stats['total_size_mb'] = sum(f.stat().st_size for f in files) / (1024 * 1024)
            stats['oldest_backup'] = datetime.fromtimestamp(min(mtimes))
            stats['newest_backup'] = datetime.fromtimestamp(max(mtimes))
        except OSError as e:
            self.logger.error(f"Error obteniendo estadísticas: {e}")

        return stats

    def shutdown(self):
        """Detiene el worker de limpieza"""
        self._executor.shutdown(wait=True)
