"""
Dobles de prueba: conexión MySQL falsa y estrategias controlables
"""
import threading
from pathlib import Path

from mysql.connector import Error

from mysqlkeeper.strategies.base_strategy import BackupStrategy


def _table_from(sql):
    return sql.split()[-1].strip('`')


def _as_bytes(value):
    return bytearray(value.encode("utf-8")) if isinstance(value, str) else value


class FakeCursor:
    """Cursor que responde a las consultas del motor integrado"""

    def __init__(self, conn):
        self.conn = conn
        self._rows = []
        self.closed = False

    def execute(self, sql, params=None):
        self.conn.queries.append(sql)
        for fragment in self.conn.fail_on:
            if fragment in sql:
                raise Error(f"fallo simulado en: {sql}")

        if sql == "SHOW FULL TABLES":
            rows = [(name, 'BASE TABLE') for name in self.conn.tables]
            rows += [(name, 'VIEW') for name in self.conn.views]
        elif sql.startswith("SHOW CREATE TABLE"):
            name = _table_from(sql)
            rows = [(name, f"CREATE TABLE `{name}` (\n  `id` int NOT NULL\n) ENGINE=InnoDB")]
        elif sql.startswith("SHOW COLUMNS FROM"):
            name = _table_from(sql)
            rows = [(c, 'varchar(255)', 'YES', '', None, '') for c in self.conn.tables[name]['columns']]
        elif sql.startswith("SELECT COUNT(*)"):
            rows = [(len(self.conn.tables[_table_from(sql)]['rows']),)]
        elif sql.startswith("SELECT * FROM"):
            rows = list(self.conn.tables[_table_from(sql)]['rows'])
        else:
            raise Error(f"consulta inesperada: {sql}")
        if self.conn.bytes_metadata and sql.startswith("SHOW"):
            rows = [tuple(_as_bytes(v) for v in row) for row in rows]
        self._rows = rows

    def fetchall(self):
        rows, self._rows = self._rows, []
        return rows

    def fetchone(self):
        return self._rows.pop(0) if self._rows else None

    def fetchmany(self, size=1):
        chunk, self._rows = self._rows[:size], self._rows[size:]
        return chunk

    def close(self):
        self.closed = True


class FakeConnection:
    """Conexión falsa con tablas en memoria: {nombre: {'columns': [...], 'rows': [...]}}"""

    def __init__(self, tables=None, views=None, fail_on=None, bytes_metadata=False):
        self.tables = tables or {}
        self.bytes_metadata = bytes_metadata
        self.views = views or []
        self.fail_on = fail_on or []
        self.queries = []
        self.closed = False

    def cursor(self, *args, **kwargs):
        return FakeCursor(self)

    def close(self):
        self.closed = True


def fake_connector(conn):
    """Connector compatible con connection.connect que devuelve conn"""
    def connect(request, timeout=None):
        return conn
    return connect


class BlockingStrategy(BackupStrategy):
    """Estrategia que espera una señal antes de terminar"""

    name = "blocking"

    def __init__(self):
        super().__init__()
        self.started = threading.Event()
        self.release = threading.Event()

    def backup(self, request, progress):
        progress.report(50, "Esperando...")
        self.started.set()
        self.release.wait(5)
        Path(request.output_path).write_bytes(b"zip")
        progress.report(100, "Backup completado")
        return Path(request.output_path)


class StaticFactory:
    """Factory que siempre devuelve la misma estrategia (o lanza el error dado)"""

    def __init__(self, strategy=None, error=None, available=False):
        self.strategy = strategy
        self.error = error
        self.available = available
        self.resolved = []

    def resolve(self, hint, mysqldump_options=None, builtin_options=None):
        self.resolved.append(hint)
        if self.error:
            raise self.error
        return self.strategy

    def create(self, name, **kwargs):
        factory = self

        class _ToolCheck:
            def is_available(self):
                return factory.available

        return _ToolCheck()
