"""Record types and frame schemas for campaigns and leads."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Mapping

import polars as pl

from lead_metrics.arithmetic import MONEY_DTYPE, quantize_money

CAMPAIGN_SCHEMA: dict[str, pl.DataType] = {
    "campaign_id": pl.Int64(),
    "campaign_name": pl.String(),
    "spend_usd": MONEY_DTYPE,
    "revenue_usd": MONEY_DTYPE,
    "source": pl.String(),
}
LEAD_SCHEMA: dict[str, pl.DataType] = {
    "lead_id": pl.Int64(),
    "campaign_id": pl.Int64(),
    "state": pl.String(),
    "lead_cost": MONEY_DTYPE,
    "timestamp": pl.Datetime("us"),
    "converted": pl.Int64(),
}
CAMPAIGN_COLUMNS: list[str] = list(CAMPAIGN_SCHEMA)
LEAD_COLUMNS: list[str] = list(LEAD_SCHEMA)


def _to_optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, float):
        if value != value:
            return None
        return int(value)
    return int(str(value).strip())


def _to_optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _to_naive_utc(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).strip())
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


@dataclass(frozen=True)
class Campaign:
    campaign_id: int | None
    campaign_name: str | None
    spend_usd: Decimal | None
    revenue_usd: Decimal | None
    source: str | None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Campaign":
        return cls(
            campaign_id=_to_optional_int(row.get("campaign_id")),
            campaign_name=_to_optional_str(row.get("campaign_name")),
            spend_usd=quantize_money(row.get("spend_usd")),
            revenue_usd=quantize_money(row.get("revenue_usd")),
            source=_to_optional_str(row.get("source")),
        )

    def as_row(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Lead:
    lead_id: int | None
    campaign_id: int | None
    state: str | None
    lead_cost: Decimal | None
    timestamp: datetime | None
    converted: int | None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Lead":
        return cls(
            lead_id=_to_optional_int(row.get("lead_id")),
            campaign_id=_to_optional_int(row.get("campaign_id")),
            state=_to_optional_str(row.get("state")),
            lead_cost=quantize_money(row.get("lead_cost")),
            timestamp=_to_naive_utc(row.get("timestamp")),
            converted=_to_optional_int(row.get("converted")),
        )

    def as_row(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class MarketingSnapshot:
    """Campaign and lead frames for one read-only computation run."""

    campaigns: pl.DataFrame
    leads: pl.DataFrame
