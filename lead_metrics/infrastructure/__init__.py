"""Infrastructure layer package."""

from .report_exporter import save_reports_json
from .repository import load_snapshot, save_report_workbook

__all__ = ["load_snapshot", "save_report_workbook", "save_reports_json"]
