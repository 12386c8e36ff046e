# pg2xlsx/writers/excel.py
"""
Excel writer for query results using openpyxl.
"""
import datetime as dt
import logging
from pathlib import Path
from typing import Optional, Union

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import NamedStyle
from openpyxl.utils import get_column_letter

from .base import BaseWriter, Sheet
from ..cells import CellKind
from ..defaults import settings

logger = logging.getLogger(__name__)

DATETIME_STYLE = 'datetime_style'


class ExcelWriter(BaseWriter):
    """
    Write a Sheet to a single-worksheet .xlsx workbook.

    Cells are stored according to their kind:

    * String - text cell; text that looks like a formula stays text
    * Number - numeric cell holding the cell text verbatim
    * Datetime - Excel date with a ``YYYY-MM-DD HH:MM:SS`` number format,
      using the wall-clock time of the RFC 3339 text

    Every column gets the width from its Column definition.

    Parameters
    ----------
    sheet : Sheet
        Columns and rows to write
    filename : str or Path
        Output filename (.xlsx)
    sheet_name : str, optional
        Worksheet title. Defaults to the sheet_name setting.
    creator : str, optional
        Author recorded in the document properties

    Example
    -------
    ::

        ExcelWriter(sheet, 'report.xlsx', creator='alice').write()
    """

    suffix = '.xlsx'

    def __init__(self,
                 sheet: Sheet,
                 filename: Union[str, Path],
                 sheet_name: Optional[str] = None,
                 creator: Optional[str] = None):
        super().__init__(sheet, filename)
        self.sheet_name = sheet_name or settings.get('sheet_name', 'Sheet1')
        self.creator = creator

    def _create_workbook(self) -> Workbook:
        workbook = Workbook()
        workbook.active.title = self.sheet_name
        workbook.add_named_style(NamedStyle(name=DATETIME_STYLE, number_format='YYYY-MM-DD HH:MM:SS'))
        if self.creator:
            workbook.properties.creator = self.creator
        return workbook

    def _write_data(self, path: Path) -> None:
        workbook = self._create_workbook()
        worksheet = workbook.active

        for col_idx, column in enumerate(self.sheet.columns, 1):
            worksheet.column_dimensions[get_column_letter(col_idx)].width = column.width

        for row_idx, row in enumerate(self.sheet.rows, 1):
            for col_idx, value in enumerate(row, 1):
                cell = worksheet.cell(row=row_idx, column=col_idx)
                if value.kind == CellKind.NUMBER:
                    # keep the database text as the stored number
                    cell.value = value.text
                    cell.data_type = 'n'
                elif value.kind == CellKind.DATETIME:
                    cell.value = dt.datetime.strptime(value.text[:19], '%Y-%m-%dT%H:%M:%S')
                    cell.style = DATETIME_STYLE
                else:
                    cell.value = ILLEGAL_CHARACTERS_RE.sub('', value.text)
                    cell.data_type = 's'

        workbook.save(path)
        logger.debug(f"Saved workbook: {path}")


def to_excel(sheet: Sheet, filename: Union[str, Path], **kwargs) -> int:
    """Convenience function: write a Sheet to an .xlsx file and return the row count."""
    return ExcelWriter(sheet, filename, **kwargs).write()
