# pg2xlsx/credentials.py
"""
Password lookup for database connections.

Passwords come from a PostgreSQL style password file (``~/.pgpass`` or the
file named by ``PGPASSFILE``) and, when the file has no entry for the
connection, from an interactive prompt.
"""

import csv
import logging
import os
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Union

from .defaults import settings

logger = logging.getLogger(__name__)

PGPASS_FIELDS = 5


def _password_prompt(prompt: str = 'Enter password: ') -> str:
    """
    Prompts the user to enter a password without echoing it on the terminal.

    Args:
        prompt (str): The message to display. Defaults to 'Enter password: '.

    Returns:
        str: The password entered by the user.
    """
    import getpass
    return getpass.getpass(prompt)


def default_pgpass_path() -> Path:
    """Location of the password file: $PGPASSFILE, else the pgpass_file setting."""
    env_path = os.environ.get('PGPASSFILE')
    if env_path:
        return Path(env_path).expanduser()
    return Path(settings.get('pgpass_file', '~/.pgpass')).expanduser()


def _data_lines(fp) -> Iterator[str]:
    """Yield lines that are neither comments nor blank."""
    for line in fp:
        if line.startswith('#') or not line.strip():
            continue
        yield line


def read_pgpass(path: Union[str, Path]) -> List[List[str]]:
    """
    Read every record of a password file.

    Lines are ``host:port:database:username:password``. Lines starting with
    ``#`` are comments, leading whitespace of each field is dropped.

    Raises:
        OSError: If the file cannot be opened
        ValueError: If any record does not have exactly five fields
    """
    records = []
    with open(path, encoding='utf-8', newline='') as fp:
        reader = csv.reader(_data_lines(fp), delimiter=':', skipinitialspace=True,
                            quoting=csv.QUOTE_NONE)
        for record in reader:
            if len(record) != PGPASS_FIELDS:
                raise ValueError(
                    f"{path} line {reader.line_num}: expected {PGPASS_FIELDS} fields, got {len(record)}")
            records.append(record)
    return records


def password_from_pgpass(host: Optional[str],
                         port: Optional[str],
                         dbname: Optional[str],
                         username: Optional[str],
                         path: Optional[Union[str, Path]] = None) -> Optional[str]:
    """
    Look up the password for a connection in a password file.

    The first record whose host, port, database and username all equal the
    given values wins. No wildcard matching is done.

    Returns:
        The password, or None if the file is missing, unreadable, malformed
        or has no matching record.
    """
    path = Path(path) if path else default_pgpass_path()
    key = [host or '', port or '', dbname or '', username or '']
    try:
        records = read_pgpass(path)
    except (OSError, ValueError) as e:
        logger.debug(f"Password file not usable: {e}")
        return None

    for record in records:
        if record[:4] == key:
            logger.debug(f"Found password for {username}@{host}:{port}/{dbname} in {path}")
            return record[4]

    logger.debug(f"Password for connection not found in {path}")
    return None


class CredentialResolver:
    """
    Resolve the password for a connection.

    Consults the password file first and falls back to the prompt when no
    entry matches. A miss is never an error.

    Parameters
    ----------
    pgpass_file : str or Path, optional
        Password file to read. Defaults to $PGPASSFILE or ~/.pgpass.
    prompt : callable, optional
        Called with the prompt text to read a password interactively.
        Defaults to getpass.

    Example
    -------
    ::

        resolver = CredentialResolver()
        password = resolver.get_password('localhost', '5432', 'mydb', 'alice')
    """

    def __init__(self,
                 pgpass_file: Optional[Union[str, Path]] = None,
                 prompt: Optional[Callable[[str], str]] = None):
        self.pgpass_file = pgpass_file
        self.prompt = prompt or _password_prompt

    def resolve(self, host, port, dbname, username) -> Optional[str]:
        """Password from the password file, or None when not found."""
        return password_from_pgpass(host, port, dbname, username, self.pgpass_file)

    def get_password(self, host, port, dbname, username) -> str:
        """Password from the password file, prompting for it on a miss."""
        password = self.resolve(host, port, dbname, username)
        if password is None:
            logger.info("No stored password for connection, prompting")
            password = self.prompt('Enter password: ')
        return password
