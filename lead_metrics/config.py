"""Report settings with environment overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Mapping

from lead_metrics.domain.classification import (
    DEFAULT_HIGH_PROFIT,
    DEFAULT_MEDIUM_PROFIT,
    DEFAULT_OUTLIER_HIGH,
    DEFAULT_OUTLIER_LOW,
)

ENV_PREFIX = "LEAD_METRICS_"
TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_int(env: Mapping[str, str], name: str, default: int, minimum: int = 0) -> int:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid {ENV_PREFIX}{name}: {raw}") from exc
    if value < minimum:
        raise ValueError(f"{ENV_PREFIX}{name} must be >= {minimum}, got {value}")
    return value


def _parse_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    text = raw.strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ValueError(f"Invalid {ENV_PREFIX}{name}: {raw}")


def _parse_decimal(env: Mapping[str, str], name: str, default: Decimal) -> Decimal:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = Decimal(raw.strip())
    except InvalidOperation as exc:
        raise ValueError(f"Invalid {ENV_PREFIX}{name}: {raw}") from exc
    if not value.is_finite():
        raise ValueError(f"Invalid {ENV_PREFIX}{name}: {raw}")
    return value


@dataclass(frozen=True)
class ReportSettings:
    top_n: int = 3
    include_rank_ties: bool = False
    high_profit_threshold: Decimal = DEFAULT_HIGH_PROFIT
    medium_profit_threshold: Decimal = DEFAULT_MEDIUM_PROFIT
    outlier_low: Decimal = DEFAULT_OUTLIER_LOW
    outlier_high: Decimal = DEFAULT_OUTLIER_HIGH
    conversion_weight: Decimal = Decimal("0.7")
    roi_weight: Decimal = Decimal("0.3")

    def __post_init__(self) -> None:
        if self.top_n < 1:
            raise ValueError(f"top_n must be >= 1, got {self.top_n}")
        if self.medium_profit_threshold > self.high_profit_threshold:
            raise ValueError(
                "medium_profit_threshold must not exceed high_profit_threshold, "
                f"got {self.medium_profit_threshold} > {self.high_profit_threshold}"
            )
        if self.outlier_low > self.outlier_high:
            raise ValueError(f"outlier_low must not exceed outlier_high, got {self.outlier_low} > {self.outlier_high}")

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "ReportSettings":
        source = os.environ if env is None else env
        defaults = cls()
        return cls(
            top_n=_parse_int(source, "TOP_N", defaults.top_n, minimum=1),
            include_rank_ties=_parse_bool(source, "INCLUDE_RANK_TIES", defaults.include_rank_ties),
            high_profit_threshold=_parse_decimal(source, "HIGH_PROFIT", defaults.high_profit_threshold),
            medium_profit_threshold=_parse_decimal(source, "MEDIUM_PROFIT", defaults.medium_profit_threshold),
            outlier_low=_parse_decimal(source, "OUTLIER_LOW", defaults.outlier_low),
            outlier_high=_parse_decimal(source, "OUTLIER_HIGH", defaults.outlier_high),
            conversion_weight=_parse_decimal(source, "CONVERSION_WEIGHT", defaults.conversion_weight),
            roi_weight=_parse_decimal(source, "ROI_WEIGHT", defaults.roi_weight),
        )
