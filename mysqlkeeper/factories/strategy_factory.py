"""
Factory para crear estrategias de backup
"""
from ..exceptions import ToolUnavailableError
from ..models import StrategyHint
from ..strategies.base_strategy import BackupStrategy
from ..strategies.builtin.builtin_backup_strategy import BuiltinBackupStrategy
from ..strategies.mysqldump_strategy import MySQLDumpBackupStrategy


class BackupStrategyFactory:
    """Factory para crear estrategias de backup (Factory Pattern)"""

    # Mapeo de nombres a estrategias
    _strategies = {
        'mysqldump': MySQLDumpBackupStrategy,
        'builtin': BuiltinBackupStrategy,
    }

    @classmethod
    def create(cls, name: str, **kwargs) -> BackupStrategy:
        """
        Crea una estrategia de backup por nombre

        Args:
            name: Nombre de la estrategia (mysqldump, builtin)
            **kwargs: Argumentos para el constructor de la estrategia

        Returns:
            Instancia de BackupStrategy o None si el nombre no es soportado
        """
        strategy_class = cls._strategies.get(name.lower())
        if strategy_class:
            return strategy_class(**kwargs)
        return None

    @classmethod
    def resolve(cls, hint: StrategyHint, mysqldump_options: dict = None,
                builtin_options: dict = None) -> BackupStrategy:
        """
        Resuelve la pista de estrategia en una estrategia concreta (una sola vez por petición)

        - EXTERNAL_TOOL: solo mysqldump; si no está disponible, error (sin fallback)
        - BUILT_IN: siempre el motor integrado
        - AUTO: mysqldump si está disponible, si no el motor integrado

        Args:
            hint: Estrategia solicitada
            mysqldump_options: kwargs para la estrategia mysqldump
            builtin_options: kwargs para la estrategia integrada

        Returns:
            Estrategia a ejecutar

        Raises:
            ToolUnavailableError: si se pidió mysqldump y no está instalado
        """
        hint = StrategyHint.parse(hint)
        if hint is StrategyHint.BUILT_IN:
            return cls.create('builtin', **(builtin_options or {}))

        external = cls.create('mysqldump', **(mysqldump_options or {}))
        if external.is_available():
            return external

        if hint is StrategyHint.EXTERNAL_TOOL:
            raise ToolUnavailableError(
                f"Se solicitó usar {external.tool} pero no está disponible en el sistema"
            )
        external.logger.info(f"{external.tool} no disponible, usando el motor integrado")
        return cls.create('builtin', **(builtin_options or {}))

    @classmethod
    def register_strategy(cls, name: str, strategy_class: type):
        """
        Registra una nueva estrategia (permite extender sin modificar - Open/Closed)

        Args:
            name: Nombre de la estrategia
            strategy_class: Clase de estrategia a registrar
        """
        cls._strategies[name.lower()] = strategy_class

    @classmethod
    def get_supported_types(cls) -> list:
        """
        Obtiene lista de estrategias soportadas

        Returns:
            Lista de nombres soportados
        """
        return list(cls._strategies.keys())
