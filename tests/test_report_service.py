"""End-to-end tests for the ten report pipelines."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from lead_metrics.application.report_service import REPORT_KEYS, REPORTS, run_report, run_reports
from lead_metrics.arithmetic import quantize_ratio
from lead_metrics.config import ReportSettings
from lead_metrics.domain.classification import HIGH_PERFORMER, LOW_PERFORMER
from lead_metrics.domain.errors import SchemaError
from lead_metrics.domain.models import MarketingSnapshot
from tests.conftest import make_snapshot

T0 = datetime(2024, 1, 1, 9, 0)


def test_report_catalogue():
    assert REPORT_KEYS == [
        "top_campaigns_by_roi",
        "conversion_by_state",
        "campaigns_above_average_cpa",
        "running_conversions",
        "first_lead_per_campaign",
        "daily_cohorts",
        "campaign_performance",
        "composite_score",
        "conversion_outliers",
        "revenue_share",
    ]
    assert len({report.title for report in REPORTS}) == len(REPORTS)


def test_top_one_by_roi():
    snapshot = make_snapshot(campaigns=[(1, "A", 100, 300, "x"), (2, "B", 200, 200, "x")])

    result = run_report("top_campaigns_by_roi", snapshot, ReportSettings(top_n=1))

    assert result.to_dicts() == [
        {
            "campaign_name": "A",
            "spend_usd": Decimal("100"),
            "revenue_usd": Decimal("300"),
            "roi": Decimal("2"),
            "ranking": 1,
        }
    ]


def test_top_campaigns_by_roi_puts_undefined_last(reference_snapshot):
    result = run_report("top_campaigns_by_roi", reference_snapshot, ReportSettings(top_n=4))

    assert result["campaign_name"].to_list() == ["Delta", "Alpha", "Beta", "Gamma"]
    assert result["ranking"].to_list() == [1, 2, 3, 4]
    assert result["roi"].to_list()[-1] is None


@pytest.fixture
def tied_roi_snapshot() -> MarketingSnapshot:
    return make_snapshot(
        campaigns=[
            (1, "Echo", 100, 100, "x"),
            (2, "Delta", 100, 200, "x"),
            (3, "Alpha", 100, 300, "x"),
            (4, "Charlie", 100, 200, "x"),
            (5, "Bravo", 100, 200, "x"),
        ]
    )


def test_top_three_strict_limit_cuts_ties(tied_roi_snapshot):
    result = run_report("top_campaigns_by_roi", tied_roi_snapshot)

    assert result["campaign_name"].to_list() == ["Alpha", "Bravo", "Charlie"]
    assert result["ranking"].to_list() == [1, 2, 2]


def test_top_three_inclusive_limit_keeps_ties(tied_roi_snapshot):
    result = run_report("top_campaigns_by_roi", tied_roi_snapshot, ReportSettings(include_rank_ties=True))

    assert result["campaign_name"].to_list() == ["Alpha", "Bravo", "Charlie", "Delta"]
    assert result["ranking"].to_list() == [1, 2, 2, 2]


def test_conversion_by_state(reference_snapshot):
    result = run_report("conversion_by_state", reference_snapshot)

    assert result.columns == ["state", "total_leads", "conversions", "conversion_rate", "conv_ranking"]
    assert result.rows() == [
        ("CA", 2, 2, Decimal("1"), 1),
        ("TX", 2, 1, Decimal("0.5"), 2),
        ("NY", 2, 0, Decimal("0"), 3),
    ]


def test_campaigns_above_average_cpa(reference_snapshot):
    result = run_report("campaigns_above_average_cpa", reference_snapshot)

    assert result.rows() == [
        ("Alpha", Decimal("30"), Decimal("25")),
        ("Beta", Decimal("30"), Decimal("25")),
    ]


def test_running_conversions(reference_snapshot):
    result = run_report("running_conversions", reference_snapshot)

    assert result.columns == ["campaign_id", "timestamp", "converted", "running_conversions"]
    assert result["campaign_id"].to_list() == [1, 1, 2, 4, 4, 9]
    assert result["running_conversions"].to_list() == [1, 1, 1, 0, 0, 1]


def test_running_conversions_sorts_by_time_within_campaign():
    snapshot = make_snapshot(
        leads=[
            (1, 7, "CA", 1, datetime(2024, 1, 3), 1),
            (2, 7, "CA", 1, datetime(2024, 1, 1), 1),
            (3, 7, "CA", 1, datetime(2024, 1, 2), 0),
        ]
    )

    result = run_report("running_conversions", snapshot)

    assert result["timestamp"].to_list() == [datetime(2024, 1, 1), datetime(2024, 1, 2), datetime(2024, 1, 3)]
    assert result["running_conversions"].to_list() == [1, 1, 2]


def test_first_lead_per_campaign(reference_snapshot):
    result = run_report("first_lead_per_campaign", reference_snapshot)

    assert result.columns == ["lead_id", "campaign_id", "state", "lead_cost", "timestamp", "converted"]
    assert result["lead_id"].to_list() == [1, 3, 4, 6]
    assert result["campaign_id"].to_list() == [1, 2, 4, 9]


def test_daily_cohorts(reference_snapshot):
    result = run_report("daily_cohorts", reference_snapshot)

    assert result.rows() == [
        (date(2024, 1, 1), 2),
        (date(2024, 1, 2), 2),
        (date(2024, 1, 3), 2),
    ]


def test_campaign_performance(reference_snapshot):
    result = run_report("campaign_performance", reference_snapshot)

    assert result.rows() == [
        (4, "Delta", Decimal("90"), Decimal("12000"), Decimal("11910"), HIGH_PERFORMER),
        (1, "Alpha", Decimal("30"), Decimal("300"), Decimal("270"), LOW_PERFORMER),
        (2, "Beta", Decimal("30"), Decimal("200"), Decimal("170"), LOW_PERFORMER),
    ]


def test_composite_score(reference_snapshot):
    result = run_report("composite_score", reference_snapshot)

    assert result.columns == ["campaign_id", "campaign_name", "conversion_rate", "roi", "score", "ranking"]
    assert result["campaign_id"].to_list() == [4, 1, 2]
    assert result["score"].to_list() == [Decimal("3.3"), Decimal("0.95"), Decimal("0.7")]
    assert result["ranking"].to_list() == [1, 2, 3]


def test_conversion_outliers_exclude_boundaries():
    leads = []
    lead_id = 0
    for state, total, conversions in [("TX", 10, 1), ("WA", 5, 2), ("CA", 2, 2), ("NY", 3, 0), ("OR", 4, 1)]:
        for idx in range(total):
            lead_id += 1
            leads.append((lead_id, 1, state, 1, T0, 1 if idx < conversions else 0))
    snapshot = make_snapshot(leads=leads)

    result = run_report("conversion_outliers", snapshot)

    assert result.columns == ["state", "total_leads", "conversions", "conversion_rate"]
    assert result.rows() == [
        ("NY", 3, 0, Decimal("0")),
        ("CA", 2, 2, Decimal("1")),
    ]


def test_revenue_share(reference_snapshot):
    result = run_report("revenue_share", reference_snapshot)

    assert result["source"].to_list() == ["search", "social"]
    assert result["total_revenue"].to_list() == [Decimal("13000"), Decimal("13000")]
    assert result["percent_share"].to_list() == [
        quantize_ratio(Decimal(12300) / Decimal(13000)),
        quantize_ratio(Decimal(700) / Decimal(13000)),
    ]


def test_run_reports_returns_every_report(reference_snapshot):
    results = run_reports(reference_snapshot)

    assert [result.key for result in results] == REPORT_KEYS
    assert all(result.ok for result in results)
    assert all(result.frame is not None for result in results)


def test_run_reports_subset(reference_snapshot):
    results = run_reports(reference_snapshot, keys=["revenue_share", "daily_cohorts"])

    assert [result.key for result in results] == ["revenue_share", "daily_cohorts"]


def test_unknown_report_key(reference_snapshot):
    with pytest.raises(ValueError, match="Unknown report"):
        run_reports(reference_snapshot, keys=["nope"])


def test_missing_source_fails_only_revenue_share(reference_snapshot):
    broken = MarketingSnapshot(campaigns=reference_snapshot.campaigns.drop("source"), leads=reference_snapshot.leads)

    results = {result.key: result for result in run_reports(broken)}

    failed = {key for key, result in results.items() if not result.ok}
    assert failed == {"revenue_share"}
    assert "source" in results["revenue_share"].error
    assert results["top_campaigns_by_roi"].frame["campaign_name"].to_list() == ["Delta", "Alpha", "Beta"]
    assert results["campaign_performance"].frame.height == 3


def test_missing_spend_fails_only_roi_reports(reference_snapshot):
    broken = MarketingSnapshot(campaigns=reference_snapshot.campaigns.drop("spend_usd"), leads=reference_snapshot.leads)

    results = {result.key: result for result in run_reports(broken)}

    failed = {key for key, result in results.items() if not result.ok}
    assert failed == {"top_campaigns_by_roi", "composite_score"}
    assert all("spend_usd" in results[key].error for key in failed)
    assert results["conversion_by_state"].frame.height == 3
    assert results["daily_cohorts"].frame.height == 3


def test_trillion_dollar_cpa_is_reported():
    snapshot = make_snapshot(
        campaigns=[(1, "Whale", 100, 200, "x")],
        leads=[(1, 1, "CA", "1000000000000", T0, 1)],
    )

    results = {result.key: result for result in run_reports(snapshot)}

    assert all(result.ok for result in results.values())
    assert results["campaigns_above_average_cpa"].frame.rows() == [
        ("Whale", Decimal("1000000000000"), Decimal("1000000000000")),
    ]
    assert results["campaign_performance"].frame["profit"].to_list() == [Decimal("-999999999800")]


def test_ratio_overflow_fails_only_its_reports():
    snapshot = make_snapshot(campaigns=[(1, "Moonshot", "0.0001", "100000000000000000000", "x")])

    results = {result.key: result for result in run_reports(snapshot)}

    failed = {key for key, result in results.items() if not result.ok}
    assert failed == {"top_campaigns_by_roi", "composite_score"}
    assert results["revenue_share"].frame["percent_share"].to_list() == [Decimal("1")]


def test_run_report_raises_schema_error(reference_snapshot):
    broken = MarketingSnapshot(campaigns=reference_snapshot.campaigns, leads=reference_snapshot.leads.drop("state"))

    with pytest.raises(SchemaError):
        run_report("conversion_by_state", broken)
