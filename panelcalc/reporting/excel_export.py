"""Excel export of project load reports.

One workbook with an info sheet followed by Heat, Loading and Balance sheets.
"""

from __future__ import annotations

import io
from datetime import datetime
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from panelcalc.reporting.reports import ProjectReport

HIGH_HEAT_WATTS = 1000


def _sanitize_sheet_name(name: str) -> str:
    """Ensure Excel sheet name is valid and within length."""
    safe = "".join("-" if ch in '[]:*?/\\' else ch for ch in name).strip()
    if not safe:
        safe = "Sheet"
    return safe[:31]


def format_percentage(value: float | None) -> str:
    if value is None:
        return "N/A"
    return f"{value:.1f}%"


class ReportWorkbook:
    """Styled workbook builder for report tables."""

    def __init__(self, title: str, project_label: str):
        self.wb = Workbook()
        self.title = title
        self.project_label = project_label
        self.timestamp = datetime.now()

        # Remove default sheet
        if "Sheet" in self.wb.sheetnames:
            self.wb.remove(self.wb["Sheet"])

        self.header_fill = PatternFill(start_color="1F4E79", end_color="1F4E79", fill_type="solid")
        self.header_font = Font(bold=True, color="FFFFFF", size=11)
        self.warn_fill = PatternFill(start_color="FCE4D6", end_color="FCE4D6", fill_type="solid")
        self.border = Border(
            left=Side(style="thin"),
            right=Side(style="thin"),
            top=Side(style="thin"),
            bottom=Side(style="thin"),
        )

    def add_info_sheet(self) -> None:
        ws = self.wb.create_sheet(_sanitize_sheet_name("Export Info"), 0)
        ws["A1"] = self.title
        ws["A1"].font = Font(bold=True, size=16)

        ws["A3"] = "Project:"
        ws["B3"] = self.project_label
        ws["A4"] = "Generated:"
        ws["B4"] = self.timestamp.strftime("%Y-%m-%d %H:%M:%S")
        for row in range(3, 5):
            ws[f"A{row}"].font = Font(bold=True)

        ws.column_dimensions["A"].width = 20
        ws.column_dimensions["B"].width = 40

    def add_table_sheet(
        self,
        name: str,
        rows: list[dict[str, Any]],
        highlight: set[int] | None = None,
    ) -> None:
        """Add a sheet of rows; ``highlight`` holds 0-based row positions to shade."""
        ws = self.wb.create_sheet(_sanitize_sheet_name(name))

        if not rows:
            ws["A1"] = "No data available"
            return

        headers = list(rows[0].keys())
        for col_idx, header in enumerate(headers, start=1):
            cell = ws.cell(row=1, column=col_idx, value=header)
            cell.fill = self.header_fill
            cell.font = self.header_font
            cell.alignment = Alignment(horizontal="center", vertical="center")
            cell.border = self.border

        highlight = highlight or set()
        for position, row_data in enumerate(rows):
            for col_idx, header in enumerate(headers, start=1):
                cell = ws.cell(row=position + 2, column=col_idx, value=row_data.get(header, ""))
                cell.border = self.border
                if position in highlight:
                    cell.fill = self.warn_fill

        for col_idx in range(1, len(headers) + 1):
            ws.column_dimensions[get_column_letter(col_idx)].width = 18

        ws.freeze_panes = "A2"

    def save(self) -> bytes:
        buffer = io.BytesIO()
        self.wb.save(buffer)
        buffer.seek(0)
        return buffer.getvalue()


def export_report_to_excel(report: ProjectReport, project_label: str) -> bytes:
    """Render all three reports as an XLSX workbook."""
    workbook = ReportWorkbook("Load Calculation Reports", project_label)
    workbook.add_info_sheet()

    heat_rows = [
        {
            "Location": r.location_name,
            "Tables": r.table_count,
            "Heat (W)": r.total_watts,
        }
        for r in report.heat
    ]
    workbook.add_table_sheet(
        "Heat",
        heat_rows,
        highlight={i for i, r in enumerate(report.heat) if r.total_watts > HIGH_HEAT_WATTS},
    )

    workbook.add_table_sheet(
        "Loading",
        [
            {
                "Location": r.location_name,
                "Voltage": r.voltage_type,
                "Watts": r.total_watts,
                "Amperes": r.total_amperes,
                "Calculated": "Yes" if r.is_calculated else "No",
            }
            for r in report.loading
        ],
        highlight={i for i, r in enumerate(report.loading) if not r.is_calculated},
    )

    workbook.add_table_sheet(
        "Balance",
        [
            {
                "Location": r.location_name,
                "Voltage": r.voltage_type,
                "L1 (W)": r.L1,
                "L2 (W)": r.L2,
                "L3 (W)": r.L3,
                "Imbalance": format_percentage(r.balance_pct),
            }
            for r in report.balance
        ],
    )
    return workbook.save()
