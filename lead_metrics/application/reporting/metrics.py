"""Display formatting for report values."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any

RATIO_COLUMNS = {"roi", "conversion_rate", "cpa", "average", "score", "percent_share"}
MONEY_COLUMNS = {"spend_usd", "revenue_usd", "lead_cost", "total_cost", "profit", "source_revenue", "total_revenue"}
PCT_COLUMNS = {"conversion_rate", "percent_share"}


def fmt_money(value: Any) -> str:
    if value is None:
        return "N/A"
    amount = Decimal(value)
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def fmt_pct(value: Any) -> str:
    if value is None:
        return "N/A"
    return f"{Decimal(value) * 100:.2f}%"


def fmt_ratio(value: Any) -> str:
    if value is None:
        return "N/A"
    return f"{Decimal(value):.4f}"


def fmt_value(column: str, value: Any) -> str:
    if column in PCT_COLUMNS:
        return fmt_pct(value)
    if column in MONEY_COLUMNS:
        return fmt_money(value)
    if column in RATIO_COLUMNS:
        return fmt_ratio(value)
    if value is None:
        return "N/A"
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    return str(value)
