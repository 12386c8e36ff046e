# pg2xlsx/writers/__init__.py
"""
Spreadsheet writers.

A Sheet holds the column schema and the rows of typed Cells for one
worksheet; ExcelWriter persists it as an .xlsx workbook.

Example
-------
::

    from pg2xlsx.cells import cell_from_db
    from pg2xlsx.writers import Sheet, to_excel

    sheet = Sheet.from_names(['code'])
    sheet.append_row([cell_from_db('0042')])
    to_excel(sheet, 'codes.xlsx')
"""

from .base import BaseWriter, Column, Row, Sheet
from .excel import ExcelWriter, to_excel

__all__ = ['BaseWriter', 'Column', 'Row', 'Sheet', 'ExcelWriter', 'to_excel']
