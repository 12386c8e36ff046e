# pg2xlsx/__init__.py
"""
pg2xlsx - PostgreSQL query to xlsx exporter

Runs one query and saves its result set as a single worksheet:

- Values are typed per cell: numbers stay numbers, zero-prefixed codes
  stay text, timestamps become Excel dates, booleans become Y/N
- Passwords come from ~/.pgpass or an interactive prompt
- Optional YAML config for settings and named connections

Basic usage::

    from pg2xlsx import ExportConfig, export

    config = ExportConfig(output_file='report.xlsx', command='SELECT * FROM items',
                          host='localhost', dbname='shop', username='alice',
                          column_titles=True)
    export(config)

Command line::

    pg2xlsx -h localhost -d shop -u alice -c 'SELECT * FROM items' --titles -o report.xlsx
"""

__version__ = '0.0.1'

from .cells import Cell, CellKind, classify, cell_from_db, to_raw_value
from .config import ExportConfig, ConfigManager
from .credentials import CredentialResolver, password_from_pgpass
from .database import ConnectionParams, Database
from .export import QueryExporter, export
from .logging_utils import setup_logging
from . import writers

__all__ = [
    'Cell',
    'CellKind',
    'classify',
    'cell_from_db',
    'to_raw_value',
    'ConfigManager',
    'ExportConfig',
    'CredentialResolver',
    'password_from_pgpass',
    'ConnectionParams',
    'Database',
    'QueryExporter',
    'export',
    'setup_logging',
    'writers',
]
