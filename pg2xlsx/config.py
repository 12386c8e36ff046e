# pg2xlsx/config.py
"""
Configuration management.

Global settings and named connection profiles come from an optional YAML file;
the settings for a single run are collected into an immutable ExportConfig.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from .defaults import settings
from .database import ConnectionParams
from .exceptions import ConfigurationError

try:
    import yaml
except ImportError:
    raise ImportError("PyYAML is required. Install with: pip install PyYAML")

logger = logging.getLogger(__name__)

PROFILE_KEYS = ('host', 'port', 'database', 'user')


class ConfigManager:
    """
    Manage pg2xlsx configuration from YAML files.

    Configuration File Structure
    ----------------------------
    ::

        # pg2xlsx.yml
        settings:
          column_width: 12
          sheet_name: Export
          logging:
            level: INFO
            directory: ./logs

        connections:
          warehouse:
            host: db.example.com
            port: 5432
            database: dw
            user: report

    Passwords are never read from this file. They come from the pgpass file
    or the password prompt.

    Configuration Locations
    -----------------------
    1. File specified in config_file parameter
    2. ``./pg2xlsx.yml`` then ``./pg2xlsx.yaml``
    3. ``~/.config/pg2xlsx.yml`` then ``~/.config/pg2xlsx.yaml``

    Without any config file the built-in defaults are used.

    Parameters
    ----------
    config_file : str or Path, optional
        Path to YAML config file. If None, searches standard locations.

    Attributes
    ----------
    config_file : Path or None
        Path to the loaded configuration file
    config : dict
        Parsed configuration dictionary
    """

    def __init__(self, config_file: Optional[str] = None):
        """
        Raises
        ------
        FileNotFoundError
            If config_file was given and does not exist
        ValueError
            If the config file is invalid or malformed
        """
        self.config_file = self._find_config_file(config_file)
        self.config = self._load_config() if self.config_file else {}
        self._apply_settings()

    @staticmethod
    def _find_config_file(config_file: Optional[str]) -> Optional[Path]:
        """Find the configuration file."""
        if config_file:
            path = Path(config_file)
            if not path.exists():
                raise FileNotFoundError(f"Config file not found: {config_file}")
            return path

        candidates = [
            Path("pg2xlsx.yml"),
            Path("pg2xlsx.yaml"),
            Path.home() / ".config" / "pg2xlsx.yml",
            Path.home() / ".config" / "pg2xlsx.yaml"
        ]
        for candidate in candidates:
            if candidate.exists():
                return candidate
        return None

    def _load_config(self) -> Dict[str, Any]:
        """Load and validate configuration file."""
        try:
            with open(self.config_file, 'r') as f:
                config = yaml.safe_load(f) or {}
            if not isinstance(config, dict):
                raise ValueError(f"Invalid config file {self.config_file}.")

            if 'settings' in config and not isinstance(config['settings'], dict):
                raise ValueError(f"Invalid config file {self.config_file}: 'settings' must be a dictionary")

            connections = config.get('connections', {})
            if not isinstance(connections, dict):
                raise ValueError(f"Invalid config file {self.config_file}: 'connections' must be a dictionary")
            for name, conn in connections.items():
                if not isinstance(conn, dict):
                    raise ValueError(f"Invalid connection '{name}' in {self.config_file}: must be a dictionary")
                if 'password' in conn or 'encrypted_password' in conn:
                    raise ValueError(
                        f"Invalid connection '{name}' in {self.config_file}: "
                        f"passwords belong in the pgpass file")
                unknown = set(conn) - set(PROFILE_KEYS)
                if unknown:
                    raise ValueError(f"Invalid connection '{name}' in {self.config_file}: unknown keys {sorted(unknown)}")

            logger.info(f"Loaded config from {self.config_file}")
            return config
        except Exception as e:
            raise ValueError(f"Failed to load config file {self.config_file}: {e}") from e

    def _apply_settings(self) -> None:
        """Merge settings from the config file over the defaults."""
        for key, value in self.config.get('settings', {}).items():
            if isinstance(value, dict) and isinstance(settings.get(key), dict):
                settings[key].update(value)
            else:
                settings[key] = value

    def get_setting(self, key: str, default: Any = None) -> Any:
        """
        Get a setting value.

        Args:
            key: Setting key (supports dot notation like 'logging.level')
            default: Default value if key not found

        Example:
            width = config.get_setting('column_width', 10)
        """
        value = settings
        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def get_connection_config(self, name: str) -> Dict[str, Any]:
        """Get configuration for a named connection."""
        connections = self.config.get('connections', {})

        if name not in connections:
            available = list(connections.keys())
            raise ValueError(
                f"Connection '{name}' not found in config. "
                f"Available connections: {available}"
            )
        return connections[name].copy()

    def list_connections(self) -> List[str]:
        """List all available connection names."""
        return list(self.config.get('connections', {}).keys())


# Global config manager instance
_config_manager: Optional[ConfigManager] = None


def set_config_file(config_file: Optional[str]) -> ConfigManager:
    """Set the configuration file to use globally."""
    global _config_manager
    _config_manager = ConfigManager(config_file)
    return _config_manager


def get_config_manager() -> ConfigManager:
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def get_setting(key: str, default: Any = None) -> Any:
    """
    Get a setting value from configuration.

    Example:
        level = get_setting('logging.level', 'WARNING')
    """
    return get_config_manager().get_setting(key, default)


def _text(value: Any) -> Optional[str]:
    if value is None or value == '':
        return None
    return str(value)


@dataclass(frozen=True)
class ExportConfig:
    """
    Everything a single export run needs, fixed once at startup.

    Attributes
    ----------
    output_file : str
        Path of the .xlsx file to write
    command : str
        Inline SQL, takes priority over ``filename`` and stdin
    filename : str
        File to read SQL from when no command is given
    host, port, dbname, username : str
        Connection coordinates, None lets the driver pick its default
    no_password : bool
        Never look up or prompt for a password
    column_titles : bool
        Write a row of column names before the data
    doc_user : str
        Author for the document properties
    test_connection : bool
        Only check that the database is reachable
    """
    output_file: Optional[str] = None
    command: Optional[str] = None
    filename: Optional[str] = None
    host: Optional[str] = None
    port: Optional[str] = None
    dbname: Optional[str] = None
    username: Optional[str] = None
    no_password: bool = False
    column_titles: bool = False
    doc_user: Optional[str] = None
    test_connection: bool = False
    column_width: int = 10
    sheet_name: str = 'Sheet1'
    pgpass_file: Optional[str] = None

    @property
    def needs_password(self) -> bool:
        """A password is looked up only for a named user without -w."""
        return bool(self.username) and not self.no_password

    def connection_params(self, password: Optional[str] = None) -> ConnectionParams:
        return ConnectionParams(host=self.host, port=self.port, dbname=self.dbname,
                                user=self.username, password=password or None)

    def validate(self) -> 'ExportConfig':
        """
        Raises:
            ConfigurationError: If no output file was given for an export run
        """
        if not self.test_connection and not self.output_file:
            raise ConfigurationError("You must specify an output file name")
        return self

    @classmethod
    def from_args(cls, args, manager: Optional[ConfigManager] = None) -> 'ExportConfig':
        """
        Build the run configuration from parsed command line arguments.

        Values given on the command line take priority over the named
        connection profile (``args.connection``).

        Raises:
            ConfigurationError: If the named connection profile does not exist
                or the column_width setting is not a positive integer
        """
        manager = manager or get_config_manager()
        column_width = manager.get_setting('column_width', 10)
        try:
            column_width = int(column_width)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid column_width setting: {column_width!r}", e) from e
        if column_width < 1:
            raise ConfigurationError(f"Invalid column_width setting: {column_width!r}")

        profile = {}
        connection_name = getattr(args, 'connection', None)
        if connection_name:
            try:
                profile = manager.get_connection_config(connection_name)
            except ValueError as e:
                raise ConfigurationError(str(e), e) from e

        return cls(
            output_file=_text(args.output),
            command=_text(args.command),
            filename=_text(args.file),
            host=_text(args.host) or _text(profile.get('host')),
            port=_text(args.port) or _text(profile.get('port')),
            dbname=_text(args.dbname) or _text(profile.get('database')),
            username=_text(args.username) or _text(profile.get('user')),
            no_password=bool(args.no_password),
            column_titles=bool(args.titles),
            doc_user=_text(args.propuser),
            test_connection=bool(args.test),
            column_width=column_width,
            sheet_name=str(manager.get_setting('sheet_name', 'Sheet1')),
        )

