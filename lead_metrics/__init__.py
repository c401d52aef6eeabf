"""Marketing lead metrics package."""

from .application import REPORT_KEYS, ReportResult, run_report, run_reports
from .config import ReportSettings
from .derived import MetricsEngine
from .ingestion import build_snapshot, read_campaigns, read_leads

__all__ = [
    "MetricsEngine",
    "ReportSettings",
    "ReportResult",
    "REPORT_KEYS",
    "build_snapshot",
    "read_campaigns",
    "read_leads",
    "run_report",
    "run_reports",
]
