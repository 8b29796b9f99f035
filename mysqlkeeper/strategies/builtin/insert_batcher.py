"""
Multi-row INSERT statement batching
"""
from typing import List, Sequence, TextIO

from .value_serializer import quote_identifier

BATCH_SIZE = 1000


def format_insert(table: str, columns: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
    """
    Render one INSERT statement for already serialized rows.

    Every row line ends with a comma except the last one, which closes the
    statement with a semicolon.
    """
    column_list = ", ".join(quote_identifier(c) for c in columns)
    lines = [f"INSERT INTO {quote_identifier(table)} ({column_list}) VALUES"]
    last = len(rows) - 1
    for i, literals in enumerate(rows):
        terminator = ";" if i == last else ","
        lines.append(f"({', '.join(literals)}){terminator}")
    return "\n".join(lines) + "\n"


class InsertBatcher:
    """Buffers serialized rows and writes them as bounded INSERT statements."""

    def __init__(self, table: str, columns: Sequence[str], writer: TextIO,
                 batch_size: int = BATCH_SIZE):
        self.table = table
        self.columns = list(columns)
        self.writer = writer
        self.batch_size = batch_size
        self._buffer: List[Sequence[str]] = []
        self.statements_written = 0
        self.rows_written = 0

    def add(self, literals: Sequence[str]):
        self._buffer.append(literals)
        if len(self._buffer) >= self.batch_size:
            self.flush()

    def flush(self):
        if not self._buffer:
            return
        self.writer.write(format_insert(self.table, self.columns, self._buffer))
        self.statements_written += 1
        self.rows_written += len(self._buffer)
        self._buffer = []

    @property
    def pending(self) -> int:
        return len(self._buffer)
