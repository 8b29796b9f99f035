"""
Estrategia de backup para MySQL/MariaDB usando mysqldump
"""
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional

from ..config import Config
from ..exceptions import BackupIOError, ProcessExitError, ProcessLaunchError
from ..models import BackupRequest
from ..services.archive_service import ArchiveService
from ..services.progress import ProgressReporter
from .base_strategy import BackupStrategy

DUMP_FILE = "full_backup.sql"
ARCHIVE_MEMBER = "mysqldump_backup.sql"
VERSION_CHECK_TIMEOUT = 10


class MySQLDumpBackupStrategy(BackupStrategy):
    """Estrategia de backup para MySQL/MariaDB con la herramienta mysqldump"""

    name = "mysqldump"

    def __init__(self, archive_service: Optional[ArchiveService] = None,
                 tool: str = Config.MYSQLDUMP_BIN,
                 timeout: int = Config.MYSQLDUMP_TIMEOUT):
        super().__init__(archive_service)
        self.tool = tool
        self.timeout = timeout

    def is_available(self) -> bool:
        """
        Verifica si mysqldump está disponible en el sistema

        Nunca lanza excepciones: cualquier fallo cuenta como "no disponible".

        Returns:
            True si la herramienta se encontró y responde
        """
        path = shutil.which(self.tool)
        if not path:
            self.logger.debug(f"{self.tool} no encontrado en PATH")
            return False
        try:
            result = subprocess.run(
                [path, '--version'],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=VERSION_CHECK_TIMEOUT
            )
        except (OSError, subprocess.SubprocessError) as e:
            self.logger.debug(f"No se pudo ejecutar {self.tool}: {e}")
            return False
        return result.returncode == 0

    def build_command(self, request: BackupRequest, result_file: Path) -> List[str]:
        """
        Construye la línea de comandos de mysqldump

        Args:
            request: Petición de backup
            result_file: Archivo donde mysqldump escribirá el dump

        Returns:
            Lista de argumentos
        """
        cmd = [
            self.tool,
            f'--host={request.host}',
            f'--port={request.port}',
            f'--user={request.username}',
        ]
        # Nunca pasar un --password vacío (mysqldump lo pediría por consola)
        if request.password:
            cmd.append(f'--password={request.password}')
        cmd += [
            '--add-drop-database',   # DROP DATABASE antes de crearla
            '--add-drop-table',      # DROP TABLE antes de cada CREATE
            '--triggers',            # Incluir triggers
            '--routines',            # Incluir procedures y functions
            '--events',              # Incluir eventos
            '--single-transaction',  # Consistencia sin bloquear InnoDB
            '--databases',           # Solo la base indicada
            request.database,
            '--result-file',
            str(result_file),
        ]
        return cmd

    @staticmethod
    def _redact(cmd: List[str]) -> str:
        return " ".join('--password=****' if arg.startswith('--password=') else arg for arg in cmd)

    def backup(self, request: BackupRequest, progress: ProgressReporter) -> Path:
        """
        Ejecuta backup de MySQL/MariaDB usando mysqldump

        Args:
            request: Petición de backup
            progress: Reporter de progreso

        Returns:
            Ruta del archivo ZIP generado
        """
        self._ensure_output_dir(request.output_path)
        progress.report(5, "Preparando backup con mysqldump...")

        try:
            temp_dir = tempfile.TemporaryDirectory(prefix="mysqlkeeper_")
        except OSError as e:
            raise BackupIOError(f"Error al crear el directorio temporal: {e}") from e

        with temp_dir as work_dir:
            dump_file = Path(work_dir) / DUMP_FILE
            cmd = self.build_command(request, dump_file)

            progress.report(10, "Conectando a la base de datos...")
            self.logger.info(f"Ejecutando: {self._redact(cmd)}")
            progress.report(20, "Exportando la base de datos con mysqldump...")

            try:
                result = subprocess.run(
                    cmd,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.PIPE,
                    text=True,
                    timeout=self.timeout
                )
            except subprocess.TimeoutExpired as e:
                raise ProcessExitError(
                    f"Timeout: mysqldump tardó más de {self.timeout} segundos"
                ) from e
            except OSError as e:
                raise ProcessLaunchError(f"Error al ejecutar {self.tool}: {e}") from e

            if result.returncode != 0:
                stderr = (result.stderr or "").strip()
                raise ProcessExitError(
                    f"mysqldump falló (código {result.returncode}): {stderr}",
                    returncode=result.returncode,
                    stderr=stderr
                )

            progress.report(60, "Exportación completada, creando archivo ZIP...")

            def on_member(index, arcname):
                progress.report(70, "Comprimiendo datos del backup...")

            self.archive_service.create_archive(
                request.output_path, [(ARCHIVE_MEMBER, dump_file)], on_member
            )

        progress.report(90, "Finalizando archivo ZIP...")
        progress.report(100, "Backup completado")
        return request.output_path
