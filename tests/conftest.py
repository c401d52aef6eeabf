"""
Shared fixtures for the lead metrics test suite.

Snapshots are built from plain tuples so each test states its data inline:
- campaign tuples: (campaign_id, campaign_name, spend_usd, revenue_usd, source)
- lead tuples: (lead_id, campaign_id, state, lead_cost, timestamp, converted)
"""

from datetime import datetime
from typing import Any, Iterable, Sequence

import pytest

from lead_metrics.config import ReportSettings
from lead_metrics.derived import MetricsEngine
from lead_metrics.domain.models import MarketingSnapshot
from lead_metrics.ingestion import build_snapshot

CAMPAIGN_FIELDS = ("campaign_id", "campaign_name", "spend_usd", "revenue_usd", "source")
LEAD_FIELDS = ("lead_id", "campaign_id", "state", "lead_cost", "timestamp", "converted")


def campaign_rows(rows: Iterable[Sequence[Any]]) -> list[dict[str, Any]]:
    return [dict(zip(CAMPAIGN_FIELDS, row)) for row in rows]


def lead_rows(rows: Iterable[Sequence[Any]]) -> list[dict[str, Any]]:
    return [dict(zip(LEAD_FIELDS, row)) for row in rows]


def make_snapshot(
    campaigns: Iterable[Sequence[Any]] = (),
    leads: Iterable[Sequence[Any]] = (),
) -> MarketingSnapshot:
    return build_snapshot(campaign_rows(campaigns), lead_rows(leads))


def make_engine(
    campaigns: Iterable[Sequence[Any]] = (),
    leads: Iterable[Sequence[Any]] = (),
    settings: ReportSettings | None = None,
) -> MetricsEngine:
    return MetricsEngine(make_snapshot(campaigns, leads), settings)


# ============================================================
# Reference dataset
# ============================================================
#
# ROI:         Delta 11, Alpha 2, Beta 0, Gamma undefined (zero spend)
# Conversion:  campaign 1 -> 0.5, 2 -> 1.0, 4 -> 0, 9 -> 1.0 (9 has no campaign row)
# CPA:         1 -> 30, 2 -> 30, 4 -> undefined, 9 -> 15; average 25

REFERENCE_CAMPAIGNS = [
    (1, "Alpha", "100", "300", "search"),
    (2, "Beta", "200", "200", "social"),
    (3, "Gamma", "0", "500", "social"),
    (4, "Delta", "1000", "12000", "search"),
]
REFERENCE_LEADS = [
    (1, 1, "CA", "10", datetime(2024, 1, 1, 9, 0), 1),
    (2, 1, "TX", "20", datetime(2024, 1, 1, 10, 0), 0),
    (3, 2, "CA", "30", datetime(2024, 1, 2, 9, 0), 1),
    (4, 4, "NY", "40", datetime(2024, 1, 2, 12, 0), 0),
    (5, 4, "NY", "50", datetime(2024, 1, 3, 8, 0), 0),
    (6, 9, "TX", "15", datetime(2024, 1, 3, 9, 0), 1),
]


@pytest.fixture
def reference_snapshot() -> MarketingSnapshot:
    return make_snapshot(REFERENCE_CAMPAIGNS, REFERENCE_LEADS)


@pytest.fixture
def reference_engine(reference_snapshot: MarketingSnapshot) -> MetricsEngine:
    return MetricsEngine(reference_snapshot)
