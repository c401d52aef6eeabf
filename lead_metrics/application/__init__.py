"""Application layer package."""

from .report_service import REPORT_KEYS, REPORTS, ReportDefinition, ReportResult, assemble_report, run_report, run_reports

__all__ = ["REPORT_KEYS", "REPORTS", "ReportDefinition", "ReportResult", "assemble_report", "run_report", "run_reports"]
