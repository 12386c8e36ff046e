# pg2xlsx/database.py
"""
Database connection wrapper that provides a uniform interface
to the PostgreSQL adapters.
"""

import importlib
import importlib.util
import logging
import os
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


DRIVERS = {
    'psycopg2': {
        'database_type': 'postgres',
        'priority': 11,
        'connection_method': 'connection_string',
    },
    'psycopg': {  # psycopg3
        'database_type': 'postgres',
        'priority': 12,
        'connection_method': 'connection_string',
    },
}


@dataclass(frozen=True)
class ConnectionParams:
    """
    Connection coordinates for one run.

    Only fields that were supplied end up in the connection string, the
    driver fills in its own defaults for the rest. Transport encryption is
    always disabled.
    """
    host: Optional[str] = None
    port: Optional[str] = None
    dbname: Optional[str] = None
    user: Optional[str] = None
    password: Optional[str] = None
    sslmode: str = 'disable'

    def to_dict(self) -> Dict[str, str]:
        """Non-empty parameters in libpq keyword order."""
        params = {'sslmode': self.sslmode}
        for key in ('host', 'user', 'password', 'dbname', 'port'):
            value = getattr(self, key)
            if value:
                # a password is only sent along with a user name
                if key == 'password' and not self.user:
                    continue
                params[key] = value
        return params

    def __repr__(self) -> str:
        info = {key: val for key, val in asdict(self).items() if key != 'password'}
        return f"ConnectionParams({info})"


def get_drivers_for_database(db_type: str = 'postgres', valid_only: bool = True) -> List[str]:
    """
    Gets a list of drivers available for the specified database type.

    Parameters:
        db_type (str): The type of database for which to retrieve drivers.
        valid_only (bool): Include only drivers that are importable (default is True).

    Returns:
        List[str]: Driver names sorted by priority.
    """
    available_drivers = []
    for driver_name, info in DRIVERS.items():
        if info['database_type'] != db_type:
            continue
        if valid_only and importlib.util.find_spec(driver_name) is None:
            continue
        available_drivers.append(driver_name)
    available_drivers.sort(key=lambda d: DRIVERS[d]['priority'])
    return available_drivers


def _quote_conninfo_value(value: Any) -> str:
    value = str(value)
    if value and not any(ch in value for ch in " '\\\t\n"):
        return value
    escaped = value.replace('\\', '\\\\').replace("'", "\\'")
    return f"'{escaped}'"


def get_connection_string(**kwargs) -> str:
    """ Get libpq connection string from keyword arguments."""
    return " ".join([f"{key}={_quote_conninfo_value(value)}" for key, value in kwargs.items()])


class Database:
    """
    Database connection wrapper that provides uniform interface
    across different database adapters.
    """

    # Attributes stored locally, others delegated to _connection
    _local_attrs = ['_connection', 'interface', 'database_name']

    def __init__(self, connection, interface, database_name: Optional[str] = None):
        """
        Initialize Database wrapper.

        Args:
            connection: Underlying DB-API connection object
            interface: Database adapter module (psycopg2, psycopg, sqlite3)
            database_name: Name of the database
        """
        self._connection = connection
        self.interface = interface
        self.database_name = database_name

    def __getattr__(self, key: str) -> Any:
        """Delegate attribute access to underlying connection."""
        return getattr(self._connection, key)

    def __setattr__(self, key: str, value: Any) -> None:
        """Set attributes locally or delegate to connection."""
        if key in self._local_attrs:
            self.__dict__[key] = value
        else:
            setattr(self._connection, key, value)

    def __str__(self) -> str:
        return f'Database({self.database_name or "default"}:{self.interface.__name__})'

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @property
    def Error(self):
        """The DB-API base exception class of the adapter."""
        return self.interface.Error

    def cursor(self):
        """Plain DB-API cursor of the underlying connection."""
        return self._connection.cursor()

    def ping(self, query: str = 'SELECT 1') -> None:
        """Run a trivial query to prove the connection works."""
        cursor = self.cursor()
        try:
            cursor.execute(query)
            cursor.fetchall()
        finally:
            cursor.close()

    @classmethod
    def create(cls, params: ConnectionParams, driver: Optional[str] = None) -> 'Database':
        """
        Factory method to create a PostgreSQL connection.

        Args:
            params: Connection parameters
            driver: Adapter module name. If None, the highest priority
                    importable driver is used.

        Returns:
            Database instance

        Raises:
            ImportError: If no driver can be imported
            interface.Error: If the driver fails to connect
        """
        db_driver = None
        if driver:
            if driver not in DRIVERS:
                raise ValueError(f"Unknown driver: {driver}")
            db_driver = importlib.import_module(driver)
        else:
            for driver_name in get_drivers_for_database('postgres'):
                try:
                    db_driver = importlib.import_module(driver_name)
                    break
                except ImportError:
                    pass

        if db_driver is None:
            raise ImportError("No PostgreSQL driver found. Install with: pip install psycopg2-binary")

        logger.debug(f"Connecting with {db_driver.__name__}: {params!r}")
        connection = db_driver.connect(get_connection_string(**params.to_dict()))
        # each statement commits on its own, writes made by the query persist
        connection.autocommit = True
        return cls(connection, db_driver, params.dbname)


def sqlite(database: str, **kwargs) -> Database:
    """Create SQLite connection in autocommit mode, like Database.create."""
    import sqlite3

    kwargs.setdefault('isolation_level', None)
    connection = sqlite3.connect(database, **kwargs)
    return Database(connection, sqlite3, os.path.basename(database))
