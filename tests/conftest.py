# tests/conftest.py
"""
Shared test fixtures and configuration for pytest.
"""

import copy
import logging
import sqlite3
from pathlib import Path

import pytest

import pg2xlsx.config
from pg2xlsx.defaults import settings
from pg2xlsx.database import sqlite


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path_factory, monkeypatch):
    """Run every test in its own directory and home, with pristine settings and logging."""
    home = tmp_path_factory.mktemp('home')
    work = tmp_path_factory.mktemp('work')
    monkeypatch.setenv('HOME', str(home))
    monkeypatch.delenv('PGPASSFILE', raising=False)
    monkeypatch.chdir(work)
    monkeypatch.setattr(pg2xlsx.config, '_config_manager', None)

    saved_settings = copy.deepcopy(settings)
    root_logger = logging.getLogger()
    saved_handlers = list(root_logger.handlers)
    saved_level = root_logger.level

    yield

    settings.clear()
    settings.update(saved_settings)
    for handler in list(root_logger.handlers):
        if handler not in saved_handlers:
            root_logger.removeHandler(handler)
            handler.close()
    for handler in saved_handlers:
        if handler not in root_logger.handlers:
            root_logger.addHandler(handler)
    root_logger.setLevel(saved_level)


@pytest.fixture
def work_dir():
    return Path.cwd()


@pytest.fixture
def sample_db(tmp_path):
    """SQLite file with an items table. Text columns mimic values PostgreSQL sends as text."""
    db_path = tmp_path / 'sample.db'
    conn = sqlite3.connect(str(db_path))
    conn.execute("""
                 CREATE TABLE items
                 (
                     id      INTEGER PRIMARY KEY,
                     code    TEXT,
                     price   TEXT,
                     qty     INTEGER,
                     ratio   REAL,
                     note    TEXT
                 )
                 """)
    conn.executemany(
        "INSERT INTO items (id, code, price, qty, ratio, note) VALUES (?, ?, ?, ?, ?, ?)",
        [
            (1, '0042', '19.99', 3, 0.5, 'first'),
            (2, '1234', '0.75', 10, 1.25, None),
            (3, '007', '-5', 0, None, '=SUM(A1:A2)'),
        ]
    )
    conn.commit()
    conn.close()
    return db_path


@pytest.fixture
def sqlite_connect(sample_db):
    """Connection factory standing in for Database.create; records the params it was called with."""
    calls = []

    def connect(params):
        calls.append(params)
        return sqlite(str(sample_db))

    connect.calls = calls
    return connect


@pytest.fixture
def pgpass_file(tmp_path):
    path = tmp_path / 'pgpass'
    path.write_text(
        "# host:port:database:username:password\n"
        "localhost:5432:mydb:alice:secret\n"
        "localhost:5432:otherdb:alice:other\n"
        "db.example.com: 6432: mydb: alice: remote\n",
        encoding='utf-8'
    )
    return path
