import tempfile
from datetime import datetime
from pathlib import Path
from typing import Optional

from ...config import Config
from ...exceptions import BackupIOError
from ...models import BackupRequest, Table
from ...services.archive_service import ArchiveService
from ...services.progress import ProgressReporter
from ..base_strategy import BackupStrategy
from . import connection
from .data_generator import DataGenerator
from .schema_generator import SchemaGenerator
from .value_serializer import UNKNOWN_AS_NULL, quote_identifier

DATABASE_INFO_FILE = "00_database_info.sql"

# Ventanas de progreso: tablas 20-70 %, compresión 75-95 %
TABLES_BASE, TABLES_SPAN = 20, 50
ARCHIVE_BASE, ARCHIVE_SPAN = 75, 20


def table_file_name(table: str) -> str:
    return f"table_{table}.sql"


def window_percent(base: int, span: int, index: int, total: int) -> int:
    if total <= 0:
        return base
    return base + int(index / total * span)


class BuiltinBackupStrategy(BackupStrategy):
    """Genera el dump fila a fila con una conexión nativa (sin mysqldump)"""

    name = "builtin"

    def __init__(self, archive_service: Optional[ArchiveService] = None,
                 unknown_value_policy: str = UNKNOWN_AS_NULL,
                 connect_timeout: int = Config.CONNECT_TIMEOUT,
                 connector=None):
        super().__init__(archive_service)
        self.unknown_value_policy = unknown_value_policy
        self.connect_timeout = connect_timeout
        self._connect = connector or connection.connect

    def backup(self, request: BackupRequest, progress: ProgressReporter) -> Path:
        self._ensure_output_dir(request.output_path)
        progress.report(5, "Preparando backup con el motor integrado...")

        try:
            temp_dir = tempfile.TemporaryDirectory(prefix="mysqlkeeper_")
        except OSError as e:
            raise BackupIOError(f"Error al crear el directorio temporal: {e}") from e

        with temp_dir as work_dir:
            work_dir = Path(work_dir)

            progress.report(10, "Conectando a la base de datos...")
            self.logger.info(f"[BUILTIN] Connecting to {request.host}:{request.port}/{request.database}")
            conn = self._connect(request, timeout=self.connect_timeout)
            try:
                tables = self._dump_tables(conn, request, work_dir, progress)
            finally:
                conn.close()

            progress.report(70, "Tablas exportadas, creando archivo ZIP...")
            members = [(DATABASE_INFO_FILE, work_dir / DATABASE_INFO_FILE)]
            members += [(table_file_name(t), work_dir / table_file_name(t)) for t in tables]

            def on_member(index, arcname):
                if index == 0:
                    progress.report(ARCHIVE_BASE, "Comprimiendo información de la base de datos...")
                else:
                    progress.report(
                        window_percent(ARCHIVE_BASE, ARCHIVE_SPAN, index - 1, len(tables)),
                        "Comprimiendo datos de tabla...",
                        tables[index - 1]
                    )

            self.archive_service.create_archive(request.output_path, members, on_member)

        progress.report(95, "Finalizando archivo ZIP...")
        progress.report(100, "Backup completado")
        return request.output_path

    def _dump_tables(self, conn, request: BackupRequest, work_dir: Path,
                     progress: ProgressReporter) -> list:
        schema = SchemaGenerator(self.logger)
        data = DataGenerator(self.logger, self.unknown_value_policy)

        progress.report(15, "Analizando estructura de la base de datos...")
        self._write_database_info(work_dir / DATABASE_INFO_FILE, request.database)

        tables = schema.list_tables(conn)
        total = len(tables)
        if total == 0:
            progress.report(TABLES_BASE, "La base de datos no tiene tablas")
        else:
            progress.report(TABLES_BASE, "Iniciando backup de estructura y datos...")

        for index, name in enumerate(tables):
            percent = window_percent(TABLES_BASE, TABLES_SPAN, index, total)
            progress.report(percent, "Respaldando tabla...", name)
            self.logger.info(f"[BUILTIN] ({index + 1}/{total}) {name}")

            table = Table(name=name)
            table.columns = data.fetch_columns(conn, name)
            table.row_count = data.count_rows(conn, name)

            def on_rows(done, table=table, percent=percent):
                progress.report(
                    percent,
                    f"Respaldando datos de tabla... ({done}/{table.row_count} filas)",
                    table.name
                )

            # The file is closed before the archiver reads it back
            try:
                with open(work_dir / table_file_name(name), 'w', encoding='utf-8') as f:
                    schema.generate(conn, name, f)
                    data.generate(conn, table, f, on_rows)
            except OSError as e:
                raise BackupIOError(f"Error escribiendo el archivo de la tabla {name}: {e}") from e

        return tables

    @staticmethod
    def _write_database_info(path: Path, database: str):
        db = quote_identifier(database)
        try:
            with open(path, 'w', encoding='utf-8') as f:
                f.write("-- MySQL dump generated by mysqlkeeper (builtin engine)\n")
                f.write(f"-- Database: {database}\n")
                f.write(f"-- Date: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")
                f.write("\n-- Create database\n")
                f.write(
                    f"CREATE DATABASE IF NOT EXISTS {db} "
                    "DEFAULT CHARACTER SET utf8mb4 COLLATE utf8mb4_general_ci;\n"
                )
                f.write(f"USE {db};\n")
        except OSError as e:
            raise BackupIOError(f"Error creando {DATABASE_INFO_FILE}: {e}") from e
