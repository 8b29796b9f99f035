from contextlib import closing
from typing import List, TextIO

from mysql.connector import Error

from ...exceptions import QueryError
from .value_serializer import quote_identifier


def as_text(value) -> str:
    """Metadata columns may come back as bytes depending on the driver and charset."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8")
    return value


class SchemaGenerator:
    def __init__(self, logger):
        self.logger = logger

    def list_tables(self, conn) -> List[str]:
        """Base tables in the order the server returns them (no re-sorting)."""
        try:
            with closing(conn.cursor()) as cursor:
                cursor.execute("SHOW FULL TABLES")
                rows = cursor.fetchall()
        except Error as e:
            raise QueryError(f"Error obteniendo la lista de tablas: {e}") from e

        tables = []
        skipped = 0
        for row in rows:
            name = as_text(row[0])
            table_type = as_text(row[1]) if len(row) > 1 else "BASE TABLE"
            if table_type != "BASE TABLE":
                skipped += 1
                continue
            tables.append(name)

        if skipped:
            self.logger.info(f"[SCHEMA] {skipped} vista(s) omitida(s)")
        self.logger.info(f"[SCHEMA] Total tables: {len(tables)}")
        return tables

    def generate(self, conn, table: str, writer: TextIO):
        try:
            with closing(conn.cursor()) as cursor:
                cursor.execute(f"SHOW CREATE TABLE {quote_identifier(table)}")
                row = cursor.fetchone()
        except Error as e:
            raise QueryError(f"Error obteniendo la estructura de {table}: {e}") from e

        if not row or len(row) < 2:
            raise QueryError(f"Error obteniendo la estructura de {table}: la tabla no existe")

        create_statement = as_text(row[1])

        writer.write(f"\n-- Table structure: {table}\n\n")
        writer.write(f"DROP TABLE IF EXISTS {quote_identifier(table)};\n\n")
        writer.write(f"{create_statement};\n\n")
