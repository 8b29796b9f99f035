#!/usr/bin/env python3
"""
mysqlkeeper: backups de una base de datos MySQL/MariaDB en archivos ZIP

Uso:
    python main.py                           # servicio programado
    python main.py once [--strategy builtin] [--output backup.zip]
    python main.py --cleanup | --stats | --check | --check-tool | --init
"""
import sys
import argparse
from pathlib import Path

from mysqlkeeper.config import Config
from mysqlkeeper.exceptions import BackupError, ConfigError
from mysqlkeeper.logger import LoggerService
from mysqlkeeper.models import ProgressEvent, StrategyHint
from mysqlkeeper.repositories.config_repository import ConfigRepository
from mysqlkeeper.services.backup_service import BackupService
from mysqlkeeper.services.scheduler_service import SchedulerService
from mysqlkeeper.strategies.builtin import connection

ENV_TEMPLATE = """# Credenciales usadas por config.json (${DB_USER}, ${DB_PASSWORD})
DB_USER=backup_user
DB_PASSWORD=

# Opcionales
# BACKUP_DIR=/var/backups/mysql
# LOG_DIR=/var/log/mysqlkeeper
# MYSQLDUMP_BIN=/usr/bin/mysqldump
# LOG_LEVEL=DEBUG
"""


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(
        prog='mysqlkeeper',
        description='Backup de MySQL/MariaDB con mysqldump o con el motor integrado',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Ejemplos:
  python main.py --init                        # config.json y .env.example
  python main.py --check                       # ¿conecta y existe la base?
  python main.py once --strategy mysqldump     # backup inmediato con mysqldump
  python main.py once --output /tmp/shop.zip   # backup a un archivo concreto
  python main.py --now                         # servicio + backup al arrancar
        """
    )
    parser.add_argument('mode', nargs='?', choices=['once', 'scheduler'], default='scheduler',
                        help='once: un backup y salir; scheduler: servicio programado (default)')
    parser.add_argument('--strategy', choices=[h.value for h in StrategyHint],
                        help='Estrategia para este backup (default: backup_settings.strategy)')
    parser.add_argument('--output', type=Path, metavar='ZIP',
                        help='Archivo de salida en modo once (default: nombre convencional)')
    parser.add_argument('--now', action='store_true',
                        help='En modo scheduler, ejecutar un backup al arrancar')

    actions = parser.add_argument_group('acciones (excluyentes, no ejecutan backup)')
    exclusive = actions.add_mutually_exclusive_group()
    exclusive.add_argument('--init', dest='action', action='store_const', const='init',
                           help='Crear config.json y .env.example si no existen')
    exclusive.add_argument('--check', dest='action', action='store_const', const='check',
                           help='Probar la conexión y que la base de datos existe')
    exclusive.add_argument('--check-tool', dest='action', action='store_const', const='check_tool',
                           help='Indicar si mysqldump está disponible')
    exclusive.add_argument('--stats', dest='action', action='store_const', const='stats',
                           help='Resumen de los backups existentes')
    exclusive.add_argument('--cleanup', dest='action', action='store_const', const='cleanup',
                           help='Aplicar la retención configurada ahora')
    return parser.parse_args(argv)


def initialize_config() -> bool:
    """
    Crea las plantillas de configuración que falten

    Returns:
        True si se creó algún archivo
    """
    logger = LoggerService.get_logger("Init")
    created = []

    if Config.CONFIG_FILE.exists():
        logger.info(f"Ya existe {Config.CONFIG_FILE}, no se modifica")
    elif ConfigRepository(Config.CONFIG_FILE).create_example_config():
        created.append(Config.CONFIG_FILE)

    env_example = Config.BASE_DIR / ".env.example"
    if not env_example.exists():
        try:
            env_example.write_text(ENV_TEMPLATE, encoding='utf-8')
            created.append(env_example)
        except OSError as e:
            logger.error(f"No se pudo escribir {env_example}: {e}")

    for path in created:
        logger.info(f"Creado: {path}")
    if created:
        logger.info("Siguiente paso: copiar .env.example a .env, completar credenciales "
                    "y ajustar la sección database de config.json")
    return bool(created)


def show_statistics(backup_service: BackupService):
    """Resume los BACKUP_*.zip del directorio configurado"""
    logger = LoggerService.get_logger("Stats")
    settings = backup_service.backup_settings
    stats = backup_service.cleanup_service.get_backup_stats(settings.backup_dir)
    retention = f"{settings.retention_days} días" if settings.retention_days > 0 else "sin límite"

    rows = [
        ("Directorio", settings.backup_dir),
        ("Archivos", stats['total_files']),
        ("Tamaño total", f"{stats['total_size_mb']:.2f} MB"),
        ("Más antiguo", stats['oldest_backup'] or "-"),
        ("Más reciente", stats['newest_backup'] or "-"),
        ("Retención", retention),
        ("Estrategia", settings.strategy.value),
        ("mysqldump", "disponible" if backup_service.is_external_tool_available() else "no disponible"),
    ]
    width = max(len(label) for label, _ in rows)
    for label, value in rows:
        logger.info(f"{label.ljust(width)} : {value}")


def log_progress(event: ProgressEvent):
    """Observador de progreso para la consola"""
    logger = LoggerService.get_logger("Progress")
    table = f" [{event.current_table}]" if event.current_table else ""
    logger.info(f"{event.percent:3d}% {event.status}{table}")


def run_once(args, config_repo: ConfigRepository, backup_service: BackupService) -> int:
    logger = LoggerService.get_logger("Main")
    strategy = StrategyHint.parse(args.strategy) if args.strategy else None

    if args.output:
        request = config_repo.get_database().to_request(
            output_path=args.output,
            strategy=strategy or backup_service.backup_settings.strategy
        )
        result = backup_service.backup(request, log_progress)
    else:
        result = backup_service.backup_configured_database(strategy=strategy, observer=log_progress)

    if result.success:
        logger.info(f"✓ Backup exitoso ({result.strategy}): {result.output_file}")
        return 0
    logger.error(f"✗ Backup fallido [{result.error_type}]: {result.error}")
    return 1


def check_connection(config_repo: ConfigRepository) -> int:
    logger = LoggerService.get_logger("Main")
    db_config = config_repo.get_database()
    request = db_config.to_request(output_path=Config.BACKUP_DIR / "check.zip")
    if connection.database_exists(request):
        logger.info(f"✓ {db_config.host}:{db_config.port} accesible, la base {db_config.database} existe")
        return 0
    logger.error(f"✗ La base de datos {db_config.database} no existe en {db_config.host}")
    return 1


def check_tool(backup_service: BackupService) -> int:
    available = backup_service.is_external_tool_available()
    LoggerService.get_logger("Main").info(
        f"{Config.MYSQLDUMP_BIN}: {'disponible' if available else 'no disponible'}"
    )
    return 0 if available else 1


def cleanup(backup_service: BackupService) -> int:
    settings = backup_service.backup_settings
    deleted = backup_service.cleanup_service.cleanup_old_backups(
        settings.backup_dir, settings.retention_days
    )
    LoggerService.get_logger("Main").info(f"Backups eliminados: {deleted}")
    return 0


def main(argv=None) -> int:
    args = parse_arguments(argv)

    if args.action == 'init':
        initialize_config()
        return 0

    if not Config.CONFIG_FILE.exists():
        print(f"Error: falta {Config.CONFIG_FILE} (crear con: python main.py --init)", file=sys.stderr)
        return 1

    logger = LoggerService.get_logger("Main")
    Config.ensure_directories()

    config_repo = ConfigRepository()
    backup_service = BackupService(config_repo)

    actions = {
        'check': lambda: check_connection(config_repo),
        'check_tool': lambda: check_tool(backup_service),
        'stats': lambda: show_statistics(backup_service) or 0,
        'cleanup': lambda: cleanup(backup_service),
    }

    try:
        if args.action:
            return actions[args.action]()
        if args.mode == 'once':
            return run_once(args, config_repo, backup_service)

        SchedulerService(backup_service).start(run_immediately=args.now)
        return 0

    except (BackupError, ConfigError, ValueError) as e:
        logger.error(f"✗ {type(e).__name__}: {e}")
        return 1
    finally:
        backup_service.shutdown()


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrumpido", file=sys.stderr)
        sys.exit(130)
