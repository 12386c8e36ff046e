# pg2xlsx/export.py
"""
Export pipeline: run one query and save its result set as an .xlsx sheet.

Steps, in order:

1. resolve the password (pgpass file, then prompt) when a user is given
2. connect
3. read the query from the inline command, a file or stdin
4. execute it and take the column schema from the cursor description
5. classify every value into a Cell and append the rows in result order
6. save the workbook, replacing the output file only on success
"""

import getpass
import logging
import sys
from typing import Callable, Optional, TextIO

from .cells import cell_from_db
from .config import ExportConfig
from .credentials import CredentialResolver
from .database import ConnectionParams, Database
from .defaults import settings
from .exceptions import ConnectivityError, InputError, OutputError, QueryError
from .writers import ExcelWriter, Sheet

logger = logging.getLogger(__name__)


def current_login() -> Optional[str]:
    """Login name of the current user, None if it cannot be determined."""
    try:
        return getpass.getuser()
    except (OSError, KeyError) as e:
        logger.warning(f"Unable to get current user: {e}")
        return None


class QueryExporter:
    """
    Drives one query-to-file export.

    Parameters
    ----------
    config : ExportConfig
        Run configuration
    resolver : CredentialResolver, optional
        Password source. Defaults to the pgpass file with a getpass prompt.
    connect : callable, optional
        Called with ConnectionParams, returns a Database.
        Defaults to Database.create.
    stdin : file-like, optional
        Query source when neither a command nor a file is configured.
        Defaults to sys.stdin.

    Example
    -------
    ::

        config = ExportConfig(output_file='out.xlsx', command='SELECT * FROM items',
                              host='localhost', dbname='shop', username='alice')
        rows = QueryExporter(config).run()
    """

    def __init__(self,
                 config: ExportConfig,
                 resolver: Optional[CredentialResolver] = None,
                 connect: Optional[Callable[[ConnectionParams], Database]] = None,
                 stdin: Optional[TextIO] = None):
        self.config = config
        self.resolver = resolver or CredentialResolver(config.pgpass_file)
        self.connect = connect or Database.create
        self.stdin = stdin

    def password(self) -> Optional[str]:
        """
        Password for the connection, or None if none is needed.

        Raises:
            InputError: If the password prompt cannot be read
        """
        if not self.config.needs_password:
            return None
        cfg = self.config
        try:
            return self.resolver.get_password(cfg.host, cfg.port, cfg.dbname, cfg.username)
        except (EOFError, OSError) as e:
            raise InputError(f"unable to read password: {e}", e) from e

    def open_database(self) -> Database:
        """
        Raises:
            ConnectivityError: If the connection cannot be opened
        """
        params = self.config.connection_params(self.password())
        logger.info(f"Connecting to {params.host or 'default host'}/{params.dbname or 'default database'}")
        try:
            return self.connect(params)
        except Exception as e:
            raise ConnectivityError(f"unable to connect to postgres. {e}", e) from e

    def read_query(self) -> str:
        """
        Query text from the inline command, the query file or stdin, in that order.

        Raises:
            InputError: If the file or stdin cannot be read
        """
        if self.config.command:
            logger.debug("Using query from command line")
            return self.config.command
        try:
            if self.config.filename:
                logger.debug(f"Reading query from {self.config.filename}")
                with open(self.config.filename, encoding='utf-8') as fp:
                    return fp.read()
            logger.debug("Reading query from stdin")
            return (self.stdin or sys.stdin).read()
        except (OSError, UnicodeDecodeError) as e:
            raise InputError(f"unable to read query: {e}", e) from e

    def fetch_sheet(self, database: Database, query: str) -> Sheet:
        """
        Execute the query and collect the result set into a Sheet.

        The sheet gets its columns even when no rows come back. A statement
        without a result set (UPDATE, DDL) gives a sheet with no columns.

        Raises:
            QueryError: If execution, column metadata or fetching fails
        """
        cursor = database.cursor()
        try:
            try:
                cursor.execute(query)
            except database.Error as e:
                raise QueryError(f"unable to run query: {e}", e) from e

            try:
                description = cursor.description
            except database.Error as e:
                raise QueryError(f"unable to get column names: {e}", e) from e
            names = [col[0] for col in description or ()]
            sheet = Sheet.from_names(names, width=self.config.column_width)

            if self.config.column_titles and names:
                sheet.append_row(sheet.title_row())

            if description:
                try:
                    for record in cursor:
                        sheet.append_row([cell_from_db(value) for value in record])
                except database.Error as e:
                    raise QueryError(f"unable to fetch rows: {e}", e) from e
        finally:
            cursor.close()

        logger.info(f"Fetched {sheet.row_count} rows, {len(names)} columns")
        return sheet

    def save(self, sheet: Sheet) -> int:
        """
        Raises:
            OutputError: If the workbook cannot be written
        """
        creator = self.config.doc_user or current_login()
        writer = ExcelWriter(sheet, self.config.output_file,
                             sheet_name=self.config.sheet_name, creator=creator)
        try:
            return writer.write()
        except (OSError, ValueError) as e:
            raise OutputError(f"unable to save xlsx sheet: {e}", e) from e

    def check_connection(self) -> None:
        """
        Connect and run a trivial query.

        Raises:
            ConnectivityError: If the database is not reachable
        """
        with self.open_database() as database:
            try:
                database.ping(settings.get('test_query', 'SELECT 1'))
            except database.Error as e:
                raise ConnectivityError(f"unable to query database: {e}", e) from e
        logger.info("Connection test succeeded")

    def run(self) -> int:
        """
        Perform the export.

        Returns:
            Number of rows written, including the title row

        Raises:
            ExportError: On any fatal condition
        """
        self.config.validate()
        with self.open_database() as database:
            query = self.read_query()
            sheet = self.fetch_sheet(database, query)
        return self.save(sheet)


def export(config: ExportConfig, **kwargs) -> int:
    """Convenience function: QueryExporter(config, **kwargs).run()."""
    return QueryExporter(config, **kwargs).run()
