"""
Excepciones del sistema de backup
"""


class BackupError(Exception):
    """Error base de una operación de backup."""
    pass


class BackupBusyError(BackupError):
    """Ya hay un backup en ejecución."""
    pass


class DatabaseConnectionError(BackupError):
    """No se pudo conectar o autenticar contra la base de datos."""
    pass


class QueryError(BackupError):
    """Falló una consulta de metadatos o de datos durante el backup."""
    pass


class BackupIOError(BackupError):
    """Falló la creación de directorios, archivos temporales o la escritura."""
    pass


class ProcessError(BackupError):
    """Error relacionado con la herramienta externa de dump."""
    pass


class ProcessLaunchError(ProcessError):
    """La herramienta externa no pudo lanzarse."""
    pass


class ProcessExitError(ProcessError):
    """La herramienta externa terminó con código distinto de cero."""

    def __init__(self, message: str, returncode: int = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class ToolUnavailableError(ProcessError):
    """Se pidió la herramienta externa pero no está instalada."""
    pass


class ArchiveError(BackupError):
    """Falló la creación del archivo comprimido."""
    pass


class ValueRetrievalError(BackupError):
    """No se pudo obtener el valor de una celda (distinto de un NULL legítimo)."""
    pass


class UnsupportedValueError(BackupError):
    """Tipo de valor sin representación SQL conocida."""
    pass


class PolicyError(BackupError):
    """Directorio de limpieza inválido."""
    pass


class ConfigError(Exception):
    """Error de configuración."""
    pass
