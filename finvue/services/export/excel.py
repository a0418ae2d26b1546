"""
Excel Export

Turns a list of transactions into an .xlsx workbook: a title row, an
export timestamp, a styled header and one row per transaction, with
amounts and dates stored as real numbers and dates so the sheet can be
summed and sorted.
"""

import io
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

import structlog
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from finvue.models.ledger import Transaction


COLUMNS = [
    {"header": "Date", "width": 12},
    {"header": "Type", "width": 10},
    {"header": "Category", "width": 18},
    {"header": "Sub-category", "width": 16},
    {"header": "Amount", "width": 14, "numeric": True},
    {"header": "Source", "width": 10},
    {"header": "Status", "width": 11},
    {"header": "Note", "width": 40},
    {"header": "Created By", "width": 16},
    {"header": "ID", "width": 38},
]

HEADER_ROW = 4


def _row(transaction: Transaction) -> list:
    return [
        transaction.date,
        transaction.type.value,
        transaction.category,
        transaction.sub_category or "",
        transaction.amount,
        transaction.source.value,
        transaction.status.value,
        transaction.note,
        transaction.created_by,
        transaction.id,
    ]


class SpreadsheetExporter:
    """Exports transactions to Excel."""

    def __init__(self, company_name: Optional[str] = None, sheet_name: str = "Transactions"):
        self._company_name = company_name
        self._sheet_name = sheet_name
        self._logger = structlog.get_logger()

    def build_workbook(self, transactions: Iterable[Transaction]) -> Workbook:
        wb = Workbook()
        ws = wb.active
        ws.title = self._sheet_name

        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill(start_color="4F46E5", end_color="4F46E5", fill_type="solid")
        header_alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
        thin_border = Border(
            left=Side(style="thin"),
            right=Side(style="thin"),
            top=Side(style="thin"),
            bottom=Side(style="thin"),
        )

        title = f"{self._company_name} Ledger" if self._company_name else "Ledger"
        ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=len(COLUMNS))
        title_cell = ws.cell(row=1, column=1, value=title)
        title_cell.font = Font(bold=True, size=14)
        title_cell.alignment = Alignment(horizontal="center")

        ws.merge_cells(start_row=2, start_column=1, end_row=2, end_column=len(COLUMNS))
        stamp_cell = ws.cell(
            row=2,
            column=1,
            value=f"Exported: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        )
        stamp_cell.alignment = Alignment(horizontal="center")
        stamp_cell.font = Font(italic=True, size=10, color="666666")

        for col_idx, col in enumerate(COLUMNS, 1):
            cell = ws.cell(row=HEADER_ROW, column=col_idx, value=col["header"])
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = header_alignment
            cell.border = thin_border
            ws.column_dimensions[get_column_letter(col_idx)].width = col["width"]

        for row_idx, transaction in enumerate(transactions, HEADER_ROW + 1):
            for col_idx, value in enumerate(_row(transaction), 1):
                cell = ws.cell(row=row_idx, column=col_idx, value=value)
                cell.border = thin_border
                if COLUMNS[col_idx - 1].get("numeric"):
                    cell.number_format = "#,##0.00"
                    cell.alignment = Alignment(horizontal="right")
                elif col_idx == 1:
                    cell.number_format = "yyyy-mm-dd"

        ws.freeze_panes = ws.cell(row=HEADER_ROW + 1, column=1)
        return wb

    def export(self, transactions: Iterable[Transaction]) -> bytes:
        """Render the workbook to .xlsx bytes."""
        transactions = list(transactions)
        output = io.BytesIO()
        self.build_workbook(transactions).save(output)
        self._logger.info("transactions_exported", rows=len(transactions))
        return output.getvalue()

    def write(self, transactions: Iterable[Transaction], path: str | Path) -> Path:
        """Write the workbook to a file and return its path."""
        path = Path(path)
        path.write_bytes(self.export(transactions))
        return path
