"""
Modelos de datos del sistema
"""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from .config import Config


class StrategyHint(Enum):
    """Estrategia de backup solicitada"""
    AUTO = "auto"
    EXTERNAL_TOOL = "mysqldump"
    BUILT_IN = "builtin"

    @classmethod
    def parse(cls, value) -> "StrategyHint":
        """
        Convierte texto (auto, mysqldump, builtin) en StrategyHint

        Args:
            value: Texto o StrategyHint

        Returns:
            StrategyHint correspondiente
        """
        if isinstance(value, cls):
            return value
        if value is None or str(value).strip() == "":
            return cls.AUTO
        text = str(value).strip().lower()
        aliases = {
            "external": cls.EXTERNAL_TOOL,
            "external_tool": cls.EXTERNAL_TOOL,
            "built_in": cls.BUILT_IN,
            "built-in": cls.BUILT_IN,
        }
        if text in aliases:
            return aliases[text]
        try:
            return cls(text)
        except ValueError:
            valid = ", ".join(h.value for h in cls)
            raise ValueError(f"Estrategia desconocida: {value} (válidas: {valid})")


@dataclass(frozen=True)
class BackupRequest:
    """Petición de backup (inmutable una vez aceptada)"""
    host: str
    port: int
    username: str
    password: str = field(repr=False)
    database: str
    output_path: Path
    strategy: StrategyHint = StrategyHint.AUTO

    def __post_init__(self):
        """Validación después de inicialización"""
        if not self.database:
            raise ValueError("El nombre de la base de datos es obligatorio")
        if not self.output_path:
            raise ValueError("La ruta de salida es obligatoria")
        if not 0 < int(self.port) < 65536:
            raise ValueError(f"Puerto inválido: {self.port}")
        object.__setattr__(self, 'output_path', Path(self.output_path))
        object.__setattr__(self, 'strategy', StrategyHint.parse(self.strategy))
        object.__setattr__(self, 'password', self.password or "")


@dataclass(frozen=True)
class ProgressEvent:
    """Evento de progreso de un backup"""
    percent: int
    status: str
    current_table: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'percent', max(0, min(100, int(self.percent))))


@dataclass
class Table:
    """Tabla descubierta durante un backup"""
    name: str
    columns: List[str] = field(default_factory=list)
    row_count: Optional[int] = None


@dataclass
class DatabaseConfig:
    """Configuración de la base de datos a respaldar"""
    host: str
    port: int
    user: str
    password: str = field(repr=False)
    database: str

    def __post_init__(self):
        """Validación después de inicialización"""
        if not self.database:
            raise ValueError("El nombre de la base de datos es obligatorio")

    def to_request(self, output_path: Path, strategy=StrategyHint.AUTO) -> BackupRequest:
        """Construye una petición de backup para esta base de datos"""
        return BackupRequest(
            host=self.host,
            port=self.port,
            username=self.user,
            password=self.password,
            database=self.database,
            output_path=output_path,
            strategy=strategy
        )


@dataclass
class BackupSettings:
    """Configuración de backups"""
    backup_dir: Path = Config.BACKUP_DIR
    retention_days: int = Config.RETENTION_DAYS
    schedule: str = Config.BACKUP_HOUR
    frequency: str = "daily"
    auto: bool = False
    strategy: StrategyHint = StrategyHint.AUTO
    unknown_value_policy: str = "null"

    def __post_init__(self):
        """Validación después de inicialización"""
        self.backup_dir = Path(self.backup_dir) if self.backup_dir else Config.BACKUP_DIR
        self.retention_days = int(self.retention_days)
        self.strategy = StrategyHint.parse(self.strategy)
        if not self._validate_time_format(self.schedule):
            raise ValueError("El formato de schedule debe ser HH:MM")
        if self.frequency not in Config.FREQUENCIES:
            raise ValueError(f"Frecuencia inválida: {self.frequency}")
        if self.unknown_value_policy not in ("null", "error"):
            raise ValueError("unknown_value_policy debe ser 'null' o 'error'")

    @staticmethod
    def _validate_time_format(time_str: str) -> bool:
        """Valida formato de hora HH:MM"""
        try:
            parts = time_str.split(":")
            if len(parts) != 2:
                return False
            hours, minutes = int(parts[0]), int(parts[1])
            return 0 <= hours <= 23 and 0 <= minutes <= 59
        except (ValueError, AttributeError):
            return False


@dataclass
class RetentionPolicy:
    """Política de retención de backups"""
    directory: Path
    keep_days: int

    @property
    def enabled(self) -> bool:
        """keep_days <= 0 significa conservar todo"""
        return self.keep_days > 0


@dataclass
class BackupResult:
    """Resultado de una operación de backup"""
    database_name: str
    success: bool
    output_file: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    duration_seconds: float = 0.0
    strategy: Optional[str] = None

    def __str__(self):
        if self.success:
            return f"✓ {self.database_name}: {self.output_file} ({self.duration_seconds:.2f}s)"
        else:
            return f"✗ {self.database_name}: {self.error}"
