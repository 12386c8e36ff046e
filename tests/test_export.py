# tests/test_export.py
"""
Tests for the export pipeline, run against a SQLite stand-in for PostgreSQL.
"""

import io
from unittest.mock import MagicMock, Mock

import pytest
from openpyxl import load_workbook

from pg2xlsx.cells import Cell, CellKind
from pg2xlsx.config import ExportConfig
from pg2xlsx.credentials import CredentialResolver
from pg2xlsx.database import sqlite
from pg2xlsx.exceptions import (
    ConfigurationError, ConnectivityError, ExportError, InputError, OutputError, QueryError
)
from pg2xlsx.export import QueryExporter, export

QUERY = "SELECT code, price, qty, ratio, note FROM items ORDER BY id"


@pytest.fixture
def output_file(tmp_path):
    return tmp_path / 'out.xlsx'


@pytest.fixture
def prompt():
    return Mock(return_value='typed')


@pytest.fixture
def make_exporter(sqlite_connect, pgpass_file, prompt):
    def make(stdin=None, **options):
        config = ExportConfig(**options)
        resolver = CredentialResolver(pgpass_file, prompt=prompt)
        return QueryExporter(config, resolver=resolver, connect=sqlite_connect, stdin=stdin)
    return make


def read_rows(path):
    return [[cell.value for cell in row] for row in load_workbook(path).active.iter_rows()]


class TestRun:

    def test_export_values(self, make_exporter, output_file):
        rows = make_exporter(output_file=str(output_file), command=QUERY).run()
        assert rows == 3

        ws = load_workbook(output_file).active
        assert ws['A1'].value == '0042'
        assert ws['A1'].data_type == 's'
        assert ws['B1'].value == 19.99
        assert ws['B1'].data_type == 'n'
        assert ws['C1'].value == 3
        assert ws['D1'].value == 0.5
        assert ws['E1'].value == 'first'

        assert ws['A3'].value == '007'
        assert ws['B3'].value == -5
        assert ws['D3'].value in (None, '')
        assert ws['E3'].value == '=SUM(A1:A2)'
        assert ws['E3'].data_type == 's'

    def test_titles(self, make_exporter, output_file):
        rows = make_exporter(output_file=str(output_file), command=QUERY, column_titles=True).run()
        assert rows == 4
        assert read_rows(output_file)[0] == ['code', 'price', 'qty', 'ratio', 'note']

    def test_zero_rows_with_titles(self, make_exporter, output_file):
        exporter = make_exporter(output_file=str(output_file), column_titles=True,
                                 command="SELECT code, price FROM items WHERE id > 100")
        assert exporter.run() == 1
        assert read_rows(output_file) == [['code', 'price']]

    def test_zero_rows_without_titles(self, make_exporter, output_file):
        exporter = make_exporter(output_file=str(output_file),
                                 command="SELECT code, price FROM items WHERE id > 100")
        assert exporter.run() == 0
        assert output_file.exists()

    def test_row_order_preserved(self, make_exporter, output_file):
        make_exporter(output_file=str(output_file), command="SELECT id FROM items ORDER BY id DESC").run()
        assert [row[0] for row in read_rows(output_file)] == [3, 2, 1]

    def test_creator_from_propuser(self, make_exporter, output_file):
        make_exporter(output_file=str(output_file), command=QUERY, doc_user='reporting').run()
        assert load_workbook(output_file).properties.creator == 'reporting'

    def test_sheet_name_and_width(self, make_exporter, output_file):
        make_exporter(output_file=str(output_file), command=QUERY, sheet_name='Items', column_width=15).run()
        wb = load_workbook(output_file)
        assert wb.sheetnames == ['Items']
        assert wb.active.column_dimensions['C'].width == 15

    def test_missing_output_file(self, make_exporter):
        with pytest.raises(ConfigurationError, match="You must specify an output file name"):
            make_exporter(command=QUERY).run()

    def test_export_function(self, sqlite_connect, output_file):
        config = ExportConfig(output_file=str(output_file), command=QUERY)
        assert export(config, connect=sqlite_connect) == 3


class TestReadQuery:

    def test_command_takes_priority(self, make_exporter, tmp_path):
        query_file = tmp_path / 'query.sql'
        query_file.write_text("SELECT 2")
        exporter = make_exporter(command="SELECT 1", filename=str(query_file), stdin=io.StringIO("SELECT 3"))
        assert exporter.read_query() == "SELECT 1"

    def test_file_before_stdin(self, make_exporter, tmp_path):
        query_file = tmp_path / 'query.sql'
        query_file.write_text("SELECT 2")
        exporter = make_exporter(filename=str(query_file), stdin=io.StringIO("SELECT 3"))
        assert exporter.read_query() == "SELECT 2"

    def test_stdin(self, make_exporter):
        assert make_exporter(stdin=io.StringIO("SELECT 3\n")).read_query() == "SELECT 3\n"

    def test_query_file_export(self, make_exporter, tmp_path, output_file):
        query_file = tmp_path / 'query.sql'
        query_file.write_text(QUERY)
        assert make_exporter(output_file=str(output_file), filename=str(query_file)).run() == 3

    def test_stdin_export(self, make_exporter, output_file):
        exporter = make_exporter(output_file=str(output_file), stdin=io.StringIO(QUERY))
        assert exporter.run() == 3

    def test_missing_file(self, make_exporter, tmp_path, output_file):
        exporter = make_exporter(output_file=str(output_file), filename=str(tmp_path / 'nope.sql'))
        with pytest.raises(InputError, match="unable to read query"):
            exporter.run()
        assert not output_file.exists()


class TestFetchSheet:

    def test_cells_classified(self, make_exporter, sample_db):
        with sqlite(str(sample_db)) as database:
            sheet = make_exporter().fetch_sheet(database, "SELECT code, price, note FROM items WHERE id = 2")
        assert sheet.column_names == ['code', 'price', 'note']
        assert sheet.rows == [[Cell(CellKind.NUMBER, '1234'), Cell(CellKind.NUMBER, '0.75'),
                               Cell(CellKind.STRING, '')]]

    def test_bad_sql(self, make_exporter, output_file):
        with pytest.raises(QueryError, match="unable to run query"):
            make_exporter(output_file=str(output_file), command="SELECT FROM WHERE").run()
        assert not output_file.exists()

    def test_statement_without_result_set(self, make_exporter, output_file):
        exporter = make_exporter(output_file=str(output_file), column_titles=True,
                                 command="UPDATE items SET qty = 1 WHERE id = 0")
        assert exporter.run() == 0
        assert load_workbook(output_file).active['A1'].value is None

    def test_statement_without_result_set_is_not_iterated(self, make_exporter):
        cursor = MagicMock(description=None)
        cursor.__iter__.side_effect = ValueError('no results to fetch')
        database = Mock(Error=ValueError)
        database.cursor.return_value = cursor
        sheet = make_exporter().fetch_sheet(database, "CREATE TABLE t (a int)")
        assert sheet.columns == ()
        assert sheet.row_count == 0
        cursor.close.assert_called_once()

    def test_writes_persist(self, make_exporter, sample_db, output_file):
        exporter = make_exporter(output_file=str(output_file),
                                 command="INSERT INTO items (id, code) VALUES (9, 'x') RETURNING id")
        assert exporter.run() == 1
        assert read_rows(output_file) == [[9]]

        with sqlite(str(sample_db)) as database:
            cursor = database.cursor()
            cursor.execute("SELECT count(*) FROM items WHERE id = 9")
            assert cursor.fetchone() == (1,)

    def test_cursor_closed_on_error(self, make_exporter):
        cursor = Mock()
        cursor.execute.side_effect = ValueError('boom')
        database = Mock(Error=ValueError)
        database.cursor.return_value = cursor
        with pytest.raises(QueryError):
            make_exporter().fetch_sheet(database, "SELECT 1")
        cursor.close.assert_called_once()

    def test_fetch_failure(self, make_exporter):
        class FailingCursor:
            description = [('a',)]
            closed = False

            def execute(self, query):
                pass

            def __iter__(self):
                yield (1,)
                raise ValueError('connection lost')

            def close(self):
                self.closed = True

        cursor = FailingCursor()
        database = Mock(Error=ValueError)
        database.cursor.return_value = cursor
        with pytest.raises(QueryError, match="unable to fetch rows: connection lost"):
            make_exporter().fetch_sheet(database, "SELECT a")
        assert cursor.closed


class TestConnection:

    def test_connect_failure(self, pgpass_file, output_file):
        def connect(params):
            raise RuntimeError('could not connect to server')

        exporter = QueryExporter(ExportConfig(output_file=str(output_file), command=QUERY),
                                 resolver=CredentialResolver(pgpass_file), connect=connect)
        with pytest.raises(ConnectivityError, match="unable to connect to postgres. could not connect"):
            exporter.run()
        assert not output_file.exists()

    def test_password_from_pgpass(self, make_exporter, sqlite_connect, prompt, output_file):
        make_exporter(output_file=str(output_file), command=QUERY, host='localhost', port='5432',
                      dbname='mydb', username='alice').run()
        params = sqlite_connect.calls[0]
        assert params.password == 'secret'
        assert params.user == 'alice'
        prompt.assert_not_called()

    def test_pgpass_miss_prompts(self, make_exporter, sqlite_connect, prompt, output_file):
        make_exporter(output_file=str(output_file), command=QUERY, host='localhost', port='5432',
                      dbname='mydb', username='bob').run()
        prompt.assert_called_once_with('Enter password: ')
        assert sqlite_connect.calls[0].password == 'typed'

    def test_no_password_flag(self, make_exporter, sqlite_connect, prompt, output_file):
        make_exporter(output_file=str(output_file), command=QUERY, host='localhost', port='5432',
                      dbname='mydb', username='alice', no_password=True).run()
        prompt.assert_not_called()
        assert sqlite_connect.calls[0].password is None

    def test_no_username_no_password(self, make_exporter, sqlite_connect, prompt, output_file):
        make_exporter(output_file=str(output_file), command=QUERY, dbname='mydb').run()
        prompt.assert_not_called()
        assert sqlite_connect.calls[0].password is None

    def test_unreadable_prompt(self, make_exporter, prompt, output_file):
        prompt.side_effect = EOFError()
        exporter = make_exporter(output_file=str(output_file), command=QUERY, username='bob')
        with pytest.raises(InputError, match="unable to read password"):
            exporter.run()

    def test_check_connection(self, make_exporter):
        make_exporter(test_connection=True).check_connection()

    def test_check_connection_failure(self, make_exporter):
        database = MagicMock(Error=ValueError)
        database.__enter__.return_value = database
        database.ping.side_effect = ValueError('server closed the connection')
        exporter = make_exporter(test_connection=True)
        exporter.connect = Mock(return_value=database)
        with pytest.raises(ConnectivityError, match="unable to query database"):
            exporter.check_connection()


class TestSave:

    def test_missing_directory(self, make_exporter, tmp_path):
        exporter = make_exporter(output_file=str(tmp_path / 'missing' / 'out.xlsx'), command=QUERY)
        with pytest.raises(OutputError, match="unable to save xlsx sheet"):
            exporter.run()

    def test_errors_share_base_class(self):
        for error in (ConfigurationError, ConnectivityError, InputError, QueryError, OutputError):
            assert issubclass(error, ExportError)

    def test_original_error_kept(self, make_exporter, output_file):
        with pytest.raises(QueryError) as exc_info:
            make_exporter(output_file=str(output_file), command="SELECT FROM WHERE").run()
        assert exc_info.value.original_error is not None
