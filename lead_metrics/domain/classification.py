"""Domain policies for profit tiers and conversion outliers."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import polars as pl

from lead_metrics.arithmetic import MONEY_DTYPE, RATIO_DTYPE, safe_ge, safe_gt, safe_le, safe_lt

HIGH_PERFORMER = "High Performer"
MEDIUM_PERFORMER = "Medium"
LOW_PERFORMER = "Low Performer"

DEFAULT_HIGH_PROFIT = Decimal("10000")
DEFAULT_MEDIUM_PROFIT = Decimal("5000")
DEFAULT_OUTLIER_LOW = Decimal("0.10")
DEFAULT_OUTLIER_HIGH = Decimal("0.40")


def classify_profit(
    profit: Any,
    high_threshold: Decimal = DEFAULT_HIGH_PROFIT,
    medium_threshold: Decimal = DEFAULT_MEDIUM_PROFIT,
) -> str:
    """Bucket a profit value; both thresholds belong to the medium tier.

    A missing profit falls through to the low tier.
    """
    if safe_gt(profit, high_threshold):
        return HIGH_PERFORMER
    if safe_ge(profit, medium_threshold) and safe_le(profit, high_threshold):
        return MEDIUM_PERFORMER
    return LOW_PERFORMER


def is_conversion_outlier(
    rate: Any,
    low: Decimal = DEFAULT_OUTLIER_LOW,
    high: Decimal = DEFAULT_OUTLIER_HIGH,
) -> bool:
    return safe_lt(rate, low) or safe_gt(rate, high)


def performance_expr(
    profit: pl.Expr,
    high_threshold: Decimal = DEFAULT_HIGH_PROFIT,
    medium_threshold: Decimal = DEFAULT_MEDIUM_PROFIT,
) -> pl.Expr:
    """Column form of ``classify_profit`` over a money-typed profit expression."""
    high = pl.lit(high_threshold).cast(MONEY_DTYPE)
    medium = pl.lit(medium_threshold).cast(MONEY_DTYPE)
    # A null profit fails both conditions and lands in the low tier.
    return (
        pl.when(profit > high)
        .then(pl.lit(HIGH_PERFORMER))
        .when(profit >= medium)
        .then(pl.lit(MEDIUM_PERFORMER))
        .otherwise(pl.lit(LOW_PERFORMER))
    )


def conversion_outlier_expr(
    rate: pl.Expr,
    low: Decimal = DEFAULT_OUTLIER_LOW,
    high: Decimal = DEFAULT_OUTLIER_HIGH,
) -> pl.Expr:
    """Column form of ``is_conversion_outlier``; a null rate is never an outlier."""
    lower = pl.lit(low).cast(RATIO_DTYPE)
    upper = pl.lit(high).cast(RATIO_DTYPE)
    return ((rate < lower) | (rate > upper)).fill_null(False)
