"""Report definitions and the pipeline that assembles them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Sequence, Tuple

import polars as pl

from lead_metrics.application.reporting.selectors import SortKey, limit_rows, order_rows
from lead_metrics.config import ReportSettings
from lead_metrics.derived import MetricsEngine
from lead_metrics.domain.errors import ReportError
from lead_metrics.domain.models import MarketingSnapshot
from lead_metrics.window import rank


@dataclass(frozen=True)
class ReportDefinition:
    """One report: how to build its rows, which columns to emit and in which order."""

    key: str
    title: str
    build: Callable[[MetricsEngine], pl.DataFrame]
    columns: Tuple[str, ...]
    order_by: Tuple[SortKey, ...]
    top_n: bool = False
    rank_column: str | None = None


@dataclass(frozen=True)
class ReportResult:
    key: str
    title: str
    frame: pl.DataFrame | None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _top_campaigns_by_roi(engine: MetricsEngine) -> pl.DataFrame:
    return rank(engine.campaign_roi(), order_by="roi", descending=True, alias="ranking")


def _conversion_by_state(engine: MetricsEngine) -> pl.DataFrame:
    by_state = engine.conversion_by("state", count_field="lead_id")
    return rank(by_state, order_by="conversion_rate", descending=True, alias="conv_ranking")


def _composite_score(engine: MetricsEngine) -> pl.DataFrame:
    return rank(engine.composite_scores(), order_by="score", descending=True, alias="ranking")


REPORTS: Tuple[ReportDefinition, ...] = (
    ReportDefinition(
        key="top_campaigns_by_roi",
        title="Top campaigns by ROI",
        build=_top_campaigns_by_roi,
        columns=("campaign_name", "spend_usd", "revenue_usd", "roi", "ranking"),
        order_by=(("ranking", False), ("campaign_name", False)),
        top_n=True,
        rank_column="ranking",
    ),
    ReportDefinition(
        key="conversion_by_state",
        title="Conversion rate by state",
        build=_conversion_by_state,
        columns=("state", "total_leads", "conversions", "conversion_rate", "conv_ranking"),
        order_by=(("conv_ranking", False), ("state", False)),
    ),
    ReportDefinition(
        key="campaigns_above_average_cpa",
        title="Campaigns with CPA at or above average",
        build=MetricsEngine.campaigns_above_average_cpa,
        columns=("campaign_name", "cpa", "average"),
        order_by=(("cpa", True), ("campaign_name", False)),
    ),
    ReportDefinition(
        key="running_conversions",
        title="Running conversions per campaign",
        build=MetricsEngine.running_conversions,
        columns=("campaign_id", "timestamp", "converted", "running_conversions"),
        order_by=(("campaign_id", False), ("timestamp", False)),
    ),
    ReportDefinition(
        key="first_lead_per_campaign",
        title="First lead per campaign",
        build=MetricsEngine.first_leads,
        columns=("lead_id", "campaign_id", "state", "lead_cost", "timestamp", "converted"),
        order_by=(("campaign_id", False),),
    ),
    ReportDefinition(
        key="daily_cohorts",
        title="Daily cohorts by first appearance",
        build=MetricsEngine.lead_cohorts,
        columns=("cohort_day", "lead_count"),
        order_by=(("cohort_day", False),),
    ),
    ReportDefinition(
        key="campaign_performance",
        title="Campaign performance by profit",
        build=MetricsEngine.campaign_performance,
        columns=("campaign_id", "campaign_name", "total_cost", "revenue_usd", "profit", "performance"),
        order_by=(("profit", True), ("campaign_id", False)),
    ),
    ReportDefinition(
        key="composite_score",
        title="Composite score: conversion rate and ROI",
        build=_composite_score,
        columns=("campaign_id", "campaign_name", "conversion_rate", "roi", "score", "ranking"),
        order_by=(("ranking", False), ("campaign_id", False)),
    ),
    ReportDefinition(
        key="conversion_outliers",
        title="Conversion outliers by state",
        build=MetricsEngine.conversion_outliers,
        columns=("state", "total_leads", "conversions", "conversion_rate"),
        order_by=(("conversion_rate", False), ("state", False)),
    ),
    ReportDefinition(
        key="revenue_share",
        title="Revenue share by source",
        build=MetricsEngine.revenue_share,
        columns=("source", "source_revenue", "total_revenue", "percent_share"),
        order_by=(("percent_share", True), ("source", False)),
    ),
)
REPORTS_BY_KEY: Dict[str, ReportDefinition] = {report.key: report for report in REPORTS}
REPORT_KEYS: List[str] = [report.key for report in REPORTS]


def assemble_report(definition: ReportDefinition, engine: MetricsEngine) -> pl.DataFrame:
    """Build, project, order and limit one report."""
    settings = engine.settings
    built = definition.build(engine)
    ordered = order_rows(built.select(list(definition.columns)), definition.order_by)
    if not definition.top_n:
        return ordered
    return limit_rows(
        ordered,
        settings.top_n,
        rank_column=definition.rank_column,
        include_ties=settings.include_rank_ties,
    )


def _select_definitions(keys: Iterable[str] | None) -> List[ReportDefinition]:
    if keys is None:
        return list(REPORTS)
    selected: List[ReportDefinition] = []
    for key in keys:
        if key not in REPORTS_BY_KEY:
            raise ValueError(f"Unknown report '{key}', expected one of {REPORT_KEYS}")
        selected.append(REPORTS_BY_KEY[key])
    return selected


def run_report(key: str, snapshot: MarketingSnapshot, settings: ReportSettings | None = None) -> pl.DataFrame:
    """Compute a single report; structural problems raise ``ReportError``."""
    definition = _select_definitions([key])[0]
    return assemble_report(definition, MetricsEngine(snapshot, settings))


def run_reports(
    snapshot: MarketingSnapshot,
    settings: ReportSettings | None = None,
    keys: Sequence[str] | None = None,
) -> List[ReportResult]:
    """Compute reports in definition order, isolating failures per report.

    A ``ReportError``, a Polars error from malformed frames, or a decimal
    overflow beyond what the result columns hold is recorded on that report's
    result and does not stop the others. Shared derived tables are built once
    per run.
    """
    engine = MetricsEngine(snapshot, settings)
    results: List[ReportResult] = []
    for definition in _select_definitions(keys):
        try:
            frame = assemble_report(definition, engine)
        except (ReportError, ArithmeticError, pl.exceptions.PolarsError) as exc:
            results.append(ReportResult(key=definition.key, title=definition.title, frame=None, error=str(exc)))
            continue
        results.append(ReportResult(key=definition.key, title=definition.title, frame=frame))
    return results
