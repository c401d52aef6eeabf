"""Lead metrics entrypoint."""

from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path
from time import perf_counter
from typing import List, Sequence

from lead_metrics.application.report_service import REPORT_KEYS, run_reports
from lead_metrics.application.reporting.rendering import render_report
from lead_metrics.config import ReportSettings
from lead_metrics.infrastructure.report_exporter import save_reports_json
from lead_metrics.infrastructure.repository import load_snapshot, save_report_workbook

PROJECT_ROOT = Path(__file__).resolve().parent
DEFAULT_CAMPAIGNS_PATH = PROJECT_ROOT / "data" / "raw" / "marketing_campaigns.csv"
DEFAULT_LEADS_PATH = PROJECT_ROOT / "data" / "raw" / "leads.csv"
DEFAULT_OUTPUT_DIR = PROJECT_ROOT / "output"
PREVIEW_ROWS = 20


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Compute marketing campaign and lead reports.")
    parser.add_argument("--campaigns", type=Path, default=DEFAULT_CAMPAIGNS_PATH, help="campaigns file (.csv/.parquet/.xlsx)")
    parser.add_argument("--leads", type=Path, default=DEFAULT_LEADS_PATH, help="leads file (.csv/.parquet/.xlsx)")
    parser.add_argument("--output-dir", type=Path, default=DEFAULT_OUTPUT_DIR)
    parser.add_argument("--report", action="append", choices=REPORT_KEYS, dest="reports", help="repeat to select reports")
    parser.add_argument("--top-n", type=int, default=None, help="row limit for ranked top-N reports")
    parser.add_argument(
        "--include-rank-ties",
        action="store_true",
        default=None,
        help="keep every row tied at the top-N cut instead of a strict row limit",
    )
    parser.add_argument("--no-excel", action="store_true", help="skip the Excel workbook")
    return parser.parse_args(argv)


def _settings(args: argparse.Namespace) -> ReportSettings:
    settings = ReportSettings.from_env()
    if args.top_n is not None:
        settings = replace(settings, top_n=args.top_n)
    if args.include_rank_ties is not None:
        settings = replace(settings, include_rank_ties=args.include_rank_ties)
    return settings


def main(argv: Sequence[str] | None = None) -> int:
    pipeline_start = perf_counter()
    stage_start = pipeline_start
    stage_timings: List[tuple[str, float]] = []

    def _mark(stage_name: str) -> None:
        nonlocal stage_start
        now = perf_counter()
        stage_timings.append((stage_name, now - stage_start))
        stage_start = now

    args = _parse_args(argv)
    settings = _settings(args)
    output_json_path = args.output_dir / "reports.json"
    output_excel_path = args.output_dir / "reports.xlsx"

    snapshot = load_snapshot(args.campaigns, args.leads)
    _mark("load_snapshot")
    results = run_reports(snapshot, settings=settings, keys=args.reports)
    _mark("run_reports")

    save_reports_json(output_json_path, results)
    _mark("save_json")
    excel_saved, excel_error_message = True, ""
    if not args.no_excel:
        sheets = {result.key: result.frame for result in results if result.frame is not None}
        excel_saved, excel_error_message = save_report_workbook(output_excel_path, sheets)
        _mark("save_excel")
    total_elapsed = perf_counter() - pipeline_start

    for result in results:
        if result.frame is not None:
            print(render_report(result.title, result.frame, max_rows=PREVIEW_ROWS))
            print()

    failed = [result for result in results if not result.ok]
    print(
        "Summary prepared: "
        f"campaigns={snapshot.campaigns.height}, "
        f"leads={snapshot.leads.height}, "
        f"reports={len(results) - len(failed)}/{len(results)}"
    )
    for result in failed:
        print(f"Report failed: {result.key}: {result.error}")
    stage_text = ", ".join([f"{name}={seconds:.3f}s" for name, seconds in stage_timings])
    print(f"Stage Timing: {stage_text}")
    print(f"Total Elapsed: {total_elapsed:.3f}s")
    print(f"Saved JSON: {output_json_path}")
    if args.no_excel:
        print("Excel export disabled")
    elif excel_saved:
        print(f"Saved Excel: {output_excel_path}")
    else:
        print(f"Excel save skipped (file may be open/locked): {excel_error_message}")
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
