"""Infrastructure adapter for file-based snapshots and report workbooks."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from typing import Any, Dict

import polars as pl

from lead_metrics.domain.models import MarketingSnapshot
from lead_metrics.ingestion import read_campaigns, read_leads

EXCEL_SHEET_NAME_LIMIT = 31


def load_snapshot(campaigns_path: Path, leads_path: Path) -> MarketingSnapshot:
    return MarketingSnapshot(campaigns=read_campaigns(campaigns_path), leads=read_leads(leads_path))


def _import_openpyxl() -> Any:
    try:
        from openpyxl import Workbook
    except Exception as exc:  # pragma: no cover
        raise RuntimeError("openpyxl is required for Excel fallback I/O.") from exc
    return Workbook


def _excel_cell_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    return value


def _write_with_polars(path: Path, sheets: Dict[str, pl.DataFrame]) -> bool:
    try:
        from xlsxwriter import Workbook  # noqa: F401
    except ImportError:
        return False

    try:
        with Workbook(str(path)) as workbook:
            for sheet_name, frame in sheets.items():
                frame.write_excel(workbook, worksheet=sheet_name[:EXCEL_SHEET_NAME_LIMIT])
        return True
    except Exception:
        return False


def _write_with_openpyxl(path: Path, sheets: Dict[str, pl.DataFrame]) -> None:
    Workbook = _import_openpyxl()
    workbook = Workbook()
    default_sheet = workbook.active
    workbook.remove(default_sheet)

    for sheet_name, frame in sheets.items():
        worksheet = workbook.create_sheet(title=sheet_name[:EXCEL_SHEET_NAME_LIMIT])
        worksheet.append(frame.columns)
        for row in frame.iter_rows(named=False):
            worksheet.append([_excel_cell_value(value) for value in row])

    workbook.save(path)


def write_report_workbook(path: str | Path, sheets: Dict[str, pl.DataFrame]) -> None:
    """Write one sheet per report, via Polars when xlsxwriter is present, else openpyxl."""
    excel_path = Path(path)
    excel_path.parent.mkdir(parents=True, exist_ok=True)
    if sheets and _write_with_polars(excel_path, sheets):
        return
    _write_with_openpyxl(excel_path, sheets)


def save_report_workbook(path: Path, sheets: Dict[str, pl.DataFrame]) -> tuple[bool, str]:
    try:
        write_report_workbook(path, sheets)
    except PermissionError as exc:
        return False, str(exc)
    return True, ""
