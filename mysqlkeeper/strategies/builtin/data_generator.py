from contextlib import closing
from typing import Callable, List, Optional, TextIO

from mysql.connector import Error

from ...exceptions import QueryError
from ...models import Table
from .insert_batcher import BATCH_SIZE, InsertBatcher
from .schema_generator import as_text
from .value_serializer import UNKNOWN_AS_NULL, quote_identifier, row_literals

PROGRESS_EVERY_ROWS = 1000


class DataGenerator:
    def __init__(self, logger, unknown_policy: str = UNKNOWN_AS_NULL, batch_size: int = BATCH_SIZE):
        self.logger = logger
        self.unknown_policy = unknown_policy
        self.batch_size = batch_size

    def fetch_columns(self, conn, table: str) -> List[str]:
        try:
            with closing(conn.cursor()) as cursor:
                cursor.execute(f"SHOW COLUMNS FROM {quote_identifier(table)}")
                rows = cursor.fetchall()
        except Error as e:
            raise QueryError(f"Error obteniendo las columnas de {table}: {e}") from e

        columns = [as_text(r[0]) for r in rows]
        if not columns:
            raise QueryError(f"La tabla {table} no tiene columnas")
        return columns

    def count_rows(self, conn, table: str) -> Optional[int]:
        # The count only drives progress reporting, so a failure here is not fatal
        try:
            with closing(conn.cursor()) as cursor:
                cursor.execute(f"SELECT COUNT(*) FROM {quote_identifier(table)}")
                row = cursor.fetchone()
        except Error as e:
            self.logger.warning(f"[DATA] No se pudo contar filas de {table}: {e}")
            return None
        return int(row[0]) if row else 0

    def generate(self, conn, table: Table, writer: TextIO,
                 on_rows: Optional[Callable[[int], None]] = None) -> int:
        """
        Write LOCK TABLES, the batched INSERT statements and UNLOCK TABLES.

        on_rows is called every 1000 rows with the number of rows processed,
        only when the table's row count is known and non-zero.

        Returns:
            Number of rows written
        """
        name = quote_identifier(table.name)
        writer.write(f"\n-- Table data: {table.name}\n\n")
        writer.write(f"LOCK TABLES {name} WRITE;\n")

        batcher = InsertBatcher(table.name, table.columns, writer)
        processed = 0

        cursor = conn.cursor()
        try:
            cursor.execute(f"SELECT * FROM {name}")
            while True:
                rows = cursor.fetchmany(self.batch_size)
                if not rows:
                    break
                for row in rows:
                    batcher.add(row_literals(row, table.columns, table.name, self.unknown_policy))
                    processed += 1
                    if on_rows and table.row_count and processed % PROGRESS_EVERY_ROWS == 0:
                        on_rows(processed)
        except Error as e:
            raise QueryError(f"Error leyendo los datos de {table.name} (fila {processed + 1}): {e}") from e
        finally:
            self._close_cursor(cursor)

        batcher.flush()
        writer.write("UNLOCK TABLES;\n")

        self.logger.info(
            f"[DATA] {table.name}: {processed} filas en {batcher.statements_written} INSERT(s)"
        )
        return processed

    def _close_cursor(self, cursor):
        try:
            cursor.close()
        except Error as e:
            # Unread rows after an aborted stream; the connection is discarded anyway
            self.logger.debug(f"[DATA] Error cerrando cursor: {e}")
