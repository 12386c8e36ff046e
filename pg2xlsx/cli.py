# pg2xlsx/cli.py

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .config import ExportConfig, set_config_file
from .exceptions import ExportError
from .export import QueryExporter
from .logging_utils import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    # -h is the host flag, as in psql, so help is only available as --help
    parser = argparse.ArgumentParser(prog='pg2xlsx', add_help=False,
                                     description='Export the result of a PostgreSQL query to an xlsx file')
    parser.add_argument('--help', action='help', help='show this help message and exit')

    parser.add_argument('-f', dest='file', metavar='FILE', help='execute command from file (defaults to stdin)')
    parser.add_argument('-o', dest='output', metavar='FILE', help='output file')
    parser.add_argument('-t', dest='test', action='store_true', help='test database connection and exit')
    parser.add_argument('-c', dest='command', metavar='COMMAND', help='run a single command (ignores other input)')

    parser.add_argument('-h', dest='host', metavar='HOSTNAME', help='database server host')
    parser.add_argument('-p', dest='port', metavar='PORT', help='database server port')
    parser.add_argument('-d', dest='dbname', metavar='DBNAME', help='database name to connect to')
    parser.add_argument('-u', dest='username', metavar='USERNAME', help='username')
    parser.add_argument('-w', dest='no_password', action='store_true', help='never prompt for password')

    parser.add_argument('--titles', action='store_true', help='add row for column titles')
    parser.add_argument('--propuser', metavar='NAME',
                        help='the username in the xlsx document properties (defaults to current login)')

    parser.add_argument('--connection', metavar='NAME', help='named connection from the config file')
    parser.add_argument('--config', metavar='FILE', help='config file (defaults to ./pg2xlsx.yml or ~/.config/pg2xlsx.yml)')
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], type=str.upper,
                        help='logging level (defaults to config or WARNING)')
    parser.add_argument('--log-dir', metavar='DIR', help='write a log file to this directory')

    parser.add_argument('--version', action='store_true', help='print version string')
    return parser


def exit_with_error(err: Exception) -> int:
    print(err, file=sys.stderr)
    return 1


def main(argv: Optional[List[str]] = None, exporter_class=QueryExporter) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"v{__version__}")
        return 0

    try:
        manager = set_config_file(args.config)
    except (FileNotFoundError, ValueError) as e:
        return exit_with_error(e)

    try:
        setup_logging('pg2xlsx', log_dir=args.log_dir, level=args.log_level)
    except (OSError, ValueError) as e:
        return exit_with_error(e)

    try:
        config = ExportConfig.from_args(args, manager).validate()
        exporter = exporter_class(config)
        if config.test_connection:
            exporter.check_connection()
            print("Connection OK")
        else:
            exporter.run()
    except ExportError as e:
        logger.debug("Export failed", exc_info=True)
        return exit_with_error(e)
    except KeyboardInterrupt:
        return exit_with_error(RuntimeError("interrupted"))
    return 0


if __name__ == '__main__':
    sys.exit(main())
