import mysql.connector
from mysql.connector import Error

from ...config import Config
from ...exceptions import DatabaseConnectionError
from ...models import BackupRequest


def connect(request: BackupRequest, timeout: int = Config.CONNECT_TIMEOUT, with_database: bool = True):
    """Open a native client connection for the given request."""
    params = {
        "host": request.host,
        "port": int(request.port),
        "user": request.username,
        "password": request.password,
        "charset": "utf8mb4",
        "use_unicode": True,
        "connection_timeout": timeout,
    }
    if with_database:
        params["database"] = request.database
    try:
        return mysql.connector.connect(**params)
    except Error as e:
        raise DatabaseConnectionError(
            f"No se pudo conectar a {request.host}:{request.port} como {request.username}: {e}"
        ) from e


def database_exists(request: BackupRequest, timeout: int = Config.CONNECT_TIMEOUT) -> bool:
    """Check the server is reachable and the requested schema exists."""
    conn = connect(request, timeout=timeout, with_database=False)
    try:
        cursor = conn.cursor()
        try:
            cursor.execute(
                "SELECT SCHEMA_NAME FROM information_schema.SCHEMATA WHERE SCHEMA_NAME = %s",
                (request.database,)
            )
            return cursor.fetchone() is not None
        finally:
            cursor.close()
    except Error as e:
        raise DatabaseConnectionError(f"Error consultando information_schema: {e}") from e
    finally:
        conn.close()
