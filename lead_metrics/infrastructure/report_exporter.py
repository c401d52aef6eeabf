"""Infrastructure adapter for JSON report export."""

from __future__ import annotations

import json
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Sequence

from lead_metrics.application.report_service import ReportResult


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def reports_payload(results: Sequence[ReportResult]) -> Dict[str, Any]:
    payload: Dict[str, Any] = {}
    for result in results:
        entry: Dict[str, Any] = {"title": result.title, "ok": result.ok}
        if result.frame is not None:
            entry["columns"] = result.frame.columns
            entry["rows"] = result.frame.to_dicts()
        if result.error is not None:
            entry["error"] = result.error
        payload[result.key] = entry
    return payload


def save_reports_json(path: Path, results: Sequence[ReportResult]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    text = json.dumps(reports_payload(results), indent=2, ensure_ascii=False, default=_json_default)
    path.write_text(text, encoding="utf-8")
