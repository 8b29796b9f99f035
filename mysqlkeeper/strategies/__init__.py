"""
Estrategias de backup (mysqldump y motor integrado)
"""
from .base_strategy import BackupStrategy
from .mysqldump_strategy import MySQLDumpBackupStrategy
from .builtin.builtin_backup_strategy import BuiltinBackupStrategy

__all__ = [
    'BackupStrategy',
    'MySQLDumpBackupStrategy',
    'BuiltinBackupStrategy'
]
