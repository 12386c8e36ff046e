# pg2xlsx/writers/base.py
"""
Base class for writers, with the in-memory sheet model they persist.
"""

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, NamedTuple, Sequence, Union

from ..cells import Cell, CellKind, EMPTY_CELL
from ..defaults import settings

logger = logging.getLogger(__name__)

Row = List[Cell]


class Column(NamedTuple):
    """Output column: its name from the result metadata and display width."""
    name: str
    width: int = 10


class Sheet:
    """
    One worksheet held in memory: a fixed column schema and rows of Cells.

    Every row has exactly one Cell per column, in column order. Rows are kept
    in the order they were appended.

    Example
    -------
    ::

        sheet = Sheet.from_names(['code', 'price'])
        row = sheet.new_row()
        row[0] = Cell(CellKind.STRING, '0042')
        row[1] = Cell(CellKind.NUMBER, '19.99')
        sheet.append_row(row)
    """

    def __init__(self, columns: Sequence[Column]):
        self.columns = tuple(columns)
        self.rows: List[Row] = []

    @classmethod
    def from_names(cls, names: Sequence[str], width: int = None) -> 'Sheet':
        """Sheet whose columns all share the same width (column_width setting by default)."""
        width = width or settings.get('column_width', 10)
        return cls([Column(name, width) for name in names])

    @property
    def column_names(self) -> List[str]:
        return [col.name for col in self.columns]

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def new_row(self) -> Row:
        """Blank row sized to the column schema."""
        return [EMPTY_CELL] * len(self.columns)

    def title_row(self) -> Row:
        """Row of String cells holding the column names."""
        return [Cell(CellKind.STRING, col.name) for col in self.columns]

    def append_row(self, row: Sequence[Cell]) -> None:
        if len(row) != len(self.columns):
            raise ValueError(f"Row has {len(row)} cells, sheet has {len(self.columns)} columns")
        self.rows.append(list(row))


class BaseWriter(ABC):
    """
    Abstract base class for writers that persist a Sheet to a file.

    The file is never written in place: subclasses write to a temporary file
    in the target directory, which is renamed over the target only after the
    write succeeded. A failed write leaves any existing file untouched and no
    partial file behind.

    Parameters
    ----------
    sheet : Sheet
        Data to write
    filename : str or Path
        Output filename

    Notes
    -----
    Subclasses must implement:

    * ``_write_data(path)`` - write the complete file to ``path``
    * ``suffix`` - file suffix used for the temporary file
    """

    suffix = ''

    def __init__(self, sheet: Sheet, filename: Union[str, Path]):
        self.sheet = sheet
        self.filename = Path(filename)
        self._row_num = 0

    @property
    def row_count(self) -> int:
        """ Returns the number of rows written."""
        return self._row_num

    @abstractmethod
    def _write_data(self, path: Path) -> None:
        """
        Write the actual data. Subclasses implement format-specific logic.

        Args:
            path: Temporary file to write to
        """
        pass

    def write(self) -> int:
        """
        Main entry point for writing data.

        Returns:
            Number of rows written

        Raises:
            OSError: If the file cannot be written or renamed
        """
        fd, tmp_name = tempfile.mkstemp(prefix=f'.{self.filename.stem}.', suffix=self.suffix,
                                        dir=str(self.filename.parent))
        os.close(fd)
        tmp_path = Path(tmp_name)
        try:
            self._write_data(tmp_path)
            _apply_umask(tmp_path)
            os.replace(tmp_path, self.filename)
        except Exception as e:
            logger.error(f"Error writing data: {e}")
            tmp_path.unlink(missing_ok=True)
            raise
        self._row_num = self.sheet.row_count
        logger.info(f"Wrote {self._row_num} rows to {self.filename}")
        return self._row_num


def _apply_umask(path: Path) -> None:
    """Give a mkstemp file the permissions a regular open() would have."""
    umask = os.umask(0)
    os.umask(umask)
    os.chmod(path, 0o666 & ~umask)
