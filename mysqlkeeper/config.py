"""
Configuración centralizada del sistema de backup
"""
import logging
import os
from pathlib import Path
from dotenv import load_dotenv, find_dotenv

class Config:
    """Configuración centralizada del sistema"""

    ENV_FILE = find_dotenv(usecwd=True)

    # Cargar variables de entorno desde la raíz real del proyecto
    load_dotenv(ENV_FILE)

    # BASE_DIR debe ser la raíz donde está main.py
    BASE_DIR = Path(ENV_FILE).parent if ENV_FILE else Path(__file__).resolve().parents[1]

    BACKUP_DIR = Path(os.getenv("BACKUP_DIR")) if os.getenv("BACKUP_DIR") else (BASE_DIR / "Backups")
    LOG_DIR = Path(os.getenv("LOG_DIR")) if os.getenv("LOG_DIR") else (BASE_DIR / "Logs")
    CONFIG_FILE = BASE_DIR / "config.json"

    # Convención de nombres de los archivos de backup (usada por la limpieza)
    BACKUP_FILE_PREFIX = "BACKUP_"
    BACKUP_FILE_SUFFIX = ".zip"

    MYSQLDUMP_BIN = os.getenv("MYSQLDUMP_BIN", "mysqldump")
    MYSQLDUMP_TIMEOUT = 3600  # segundos
    CONNECT_TIMEOUT = 30      # segundos

    RETENTION_DAYS = 5       # 0 o menos = conservar todo
    BACKUP_HOUR = "02:00"
    FREQUENCIES = ['daily', 'weekly', 'monthly']

    LOG_LEVEL = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    DEFAULT_CONFIG = {
        "database": {
            "host": "localhost",
            "port": 3306,
            "user": "${DB_USER}",
            "password": "${DB_PASSWORD}",
            "database": "mi_base"
        },
        "backup_settings": {
            "backup_dir": "",
            "retention_days": 5,
            "schedule": "02:00",
            "frequency": "daily",
            "auto": False,
            "strategy": "auto",
            "unknown_value_policy": "null"
        }
    }

    @classmethod
    def ensure_directories(cls):
        """Crea los directorios necesarios si no existen"""
        cls.BACKUP_DIR.mkdir(parents=True, exist_ok=True)
        cls.LOG_DIR.mkdir(parents=True, exist_ok=True)
