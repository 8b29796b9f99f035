"""
Servicio de logging del sistema de backup

Todos los loggers cuelgan de "mysqlkeeper", que es el único con handlers:
un archivo diario compartido en LOG_DIR y la consola.
"""
import logging
import re
import sys
from datetime import datetime
from .config import Config

ROOT_LOGGER = "mysqlkeeper"

# --password=xxx (mysqldump) y password=xxx / password: xxx en mensajes de error
_SECRET_PATTERN = re.compile(r"(--password=|password\s*[=:]\s*)(\S+)", re.IGNORECASE)


class SecretFilter(logging.Filter):
    """Enmascara contraseñas antes de que el registro llegue a un handler"""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = _SECRET_PATTERN.sub(r"\1****", message)
        if masked != message:
            record.msg = masked
            record.args = ()
        return True


class LoggerService:
    """Servicio centralizado de logging"""

    _loggers = {}
    _configured = False

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """
        Obtiene el logger del componente indicado (mysqlkeeper.<name>)

        Args:
            name: Nombre del componente

        Returns:
            Logger configurado
        """
        if name not in cls._loggers:
            cls._configure_root()
            cls._loggers[name] = logging.getLogger(f"{ROOT_LOGGER}.{name}")
        return cls._loggers[name]

    @classmethod
    def _configure_root(cls):
        """Instala los handlers del logger raíz del paquete una sola vez"""
        if cls._configured:
            return
        cls._configured = True

        root = logging.getLogger(ROOT_LOGGER)
        root.setLevel(Config.LOG_LEVEL)
        root.propagate = False
        if root.handlers:
            return

        formatter = logging.Formatter(Config.LOG_FORMAT)
        secret_filter = SecretFilter()
        handlers = [logging.StreamHandler(sys.stdout)]

        # Sin directorio de logs escribible se registra solo en consola
        try:
            Config.LOG_DIR.mkdir(parents=True, exist_ok=True)
            log_file = Config.LOG_DIR / f"{ROOT_LOGGER}_{datetime.now().strftime('%Y%m%d')}.log"
            handlers.append(logging.FileHandler(log_file, encoding='utf-8'))
        except OSError as e:
            print(f"No se pudo crear el log de archivo en {Config.LOG_DIR}: {e}", file=sys.stderr)

        for handler in handlers:
            handler.setLevel(Config.LOG_LEVEL)
            handler.setFormatter(formatter)
            handler.addFilter(secret_filter)
            root.addHandler(handler)
