"""
Repositorio de configuración: config.json + credenciales desde el entorno
"""
import copy
import json
import os
import re
import tempfile
from pathlib import Path
from typing import Dict, Optional

from ..config import Config
from ..exceptions import ConfigError
from ..logger import LoggerService
from ..models import BackupSettings, DatabaseConfig

# ${VAR} o ${VAR:-valor por defecto}
_ENV_REFERENCE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")


class ConfigRepository:
    """Lee y escribe config.json (secciones database y backup_settings)"""

    def __init__(self, config_file: Optional[Path] = None):
        """
        Args:
            config_file: Ruta del JSON (por defecto Config.CONFIG_FILE)
        """
        self.config_file = Path(config_file) if config_file else Config.CONFIG_FILE
        self.logger = LoggerService.get_logger("ConfigRepository")
        self._data = None

    def load(self) -> Dict:
        """
        Lee el archivo y completa cada sección con los valores por defecto

        Un archivo ausente, ilegible o que no contiene un objeto JSON deja
        la configuración por defecto (se registra el motivo).

        Returns:
            Configuración completa
        """
        self._data = self._with_defaults(self._read_file())
        return self._data

    def _read_file(self) -> Dict:
        if not self.config_file.exists():
            self.logger.warning(f"No existe {self.config_file}, se usan valores por defecto")
            return {}
        try:
            with open(self.config_file, "r", encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            self.logger.error(f"{self.config_file.name} no es JSON válido (línea {e.lineno}): {e.msg}")
            return {}
        except OSError as e:
            self.logger.error(f"No se pudo leer {self.config_file}: {e}")
            return {}

        if not isinstance(data, dict):
            self.logger.error(f"{self.config_file.name} debe contener un objeto JSON")
            return {}
        self.logger.info(f"Configuración cargada: {self.config_file}")
        return data

    @staticmethod
    def _with_defaults(data: Dict) -> Dict:
        merged = copy.deepcopy(Config.DEFAULT_CONFIG)
        for section, values in data.items():
            if isinstance(values, dict) and isinstance(merged.get(section), dict):
                merged[section].update(values)
            else:
                merged[section] = values
        return merged

    def save(self, config: Dict) -> bool:
        """
        Escribe la configuración de forma atómica y solo legible por el dueño

        Returns:
            True si se guardó
        """
        tmp_name = None
        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=".config_", dir=self.config_file.parent)
            with os.fdopen(fd, "w", encoding='utf-8') as f:
                json.dump(config, f, indent=4, ensure_ascii=False)
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.config_file)
        except OSError as e:
            self.logger.error(f"No se pudo guardar {self.config_file}: {e}")
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            return False

        self._data = None
        self.logger.info(f"Configuración guardada: {self.config_file}")
        return True

    def _section(self, name: str) -> Dict:
        if self._data is None:
            self.load()
        section = self._data.get(name)
        if not isinstance(section, dict):
            raise ConfigError(f"La sección '{name}' debe ser un objeto")
        return section

    def get_database(self) -> DatabaseConfig:
        """
        Base de datos a respaldar, con las referencias ${VAR} resueltas

        Raises:
            ConfigError: si la sección database es inválida
        """
        db = self._section('database')
        try:
            return DatabaseConfig(
                host=self._resolve_credential(db.get('host')) or 'localhost',
                port=int(self._resolve_credential(db.get('port')) or 3306),
                user=self._resolve_credential(db.get('user')),
                password=self._resolve_credential(db.get('password')),
                database=self._resolve_credential(db.get('database'))
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Configuración de base de datos inválida: {e}") from e

    def get_backup_settings(self) -> BackupSettings:
        """Ajustes de backup; si son inválidos se registra el error y se usan los de fábrica"""
        try:
            settings = self._section('backup_settings')
            return BackupSettings(
                backup_dir=settings.get('backup_dir') or Config.BACKUP_DIR,
                retention_days=settings.get('retention_days', Config.RETENTION_DAYS),
                schedule=settings.get('schedule', Config.BACKUP_HOUR),
                frequency=settings.get('frequency', 'daily'),
                auto=bool(settings.get('auto', False)),
                strategy=settings.get('strategy', 'auto'),
                unknown_value_policy=settings.get('unknown_value_policy', 'null')
            )
        except (ConfigError, TypeError, ValueError) as e:
            self.logger.error(f"backup_settings inválido ({e}), se usan los valores por defecto")
            return BackupSettings()

    def _resolve_credential(self, value) -> str:
        """Sustituye ${VAR} / ${VAR:-defecto} por el valor del entorno"""
        if value is None:
            return ""
        if not isinstance(value, str):
            return str(value)

        def replace(match):
            name, default = match.group(1), match.group(2)
            resolved = os.getenv(name)
            if resolved:
                return resolved
            if default is None:
                self.logger.warning(f"Variable de entorno no definida: {name}")
                return ""
            return default

        return _ENV_REFERENCE.sub(replace, value)

    def create_example_config(self) -> bool:
        """Escribe DEFAULT_CONFIG como plantilla editable"""
        return self.save(Config.DEFAULT_CONFIG)
