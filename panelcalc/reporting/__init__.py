"""Project load reports and their Excel export."""

from panelcalc.reporting.excel_export import export_report_to_excel
from panelcalc.reporting.reports import (
    BalanceReportRow,
    HeatReportRow,
    LoadingReportRow,
    ProjectReport,
    build_project_report,
    heat_by_location,
    loading_by_table,
    three_phase_balance,
)

__all__ = [
    "BalanceReportRow",
    "HeatReportRow",
    "LoadingReportRow",
    "ProjectReport",
    "build_project_report",
    "export_report_to_excel",
    "heat_by_location",
    "loading_by_table",
    "three_phase_balance",
]
