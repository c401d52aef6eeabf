"""Metrics Engine: ROI, conversion, CPA, cohorts, profit, scores and revenue share."""

from __future__ import annotations

from functools import partial
from typing import Callable, Dict, List, Sequence

import polars as pl

from lead_metrics.aggregator import aggregate, count_of, max_of, mean_of, min_of, sum_of
from lead_metrics.arithmetic import ratio_expr, roi, safe_div_expr, weighted_score
from lead_metrics.config import ReportSettings
from lead_metrics.domain.classification import conversion_outlier_expr, performance_expr
from lead_metrics.domain.errors import SchemaError
from lead_metrics.domain.models import LEAD_COLUMNS, MarketingSnapshot
from lead_metrics.joins import cross_join, inner_join
from lead_metrics.window import row_number, running_sum


class MetricsEngine:
    """Derived metric tables over one campaign/lead snapshot.

    Tables that several reports share are computed once and cached; Polars
    frames are immutable, so handing the same frame to every caller is safe.
    Each table checks only the snapshot columns it reads, so a missing column
    fails the tables that need it and no others.
    """

    ROI_COLUMNS: List[str] = ["campaign_id", "campaign_name", "spend_usd", "revenue_usd"]
    PROFIT_CAMPAIGN_COLUMNS: List[str] = ["campaign_id", "campaign_name", "revenue_usd"]
    PROFIT_LEAD_COLUMNS: List[str] = ["campaign_id", "lead_cost"]
    CPA_COLUMNS: List[str] = ["campaign_id", "lead_cost", "converted"]
    RUNNING_COLUMNS: List[str] = ["campaign_id", "timestamp", "converted"]
    CONVERSION_FIELDS: List[str] = ["total_leads", "conversions", "conversion_rate"]

    def __init__(self, snapshot: MarketingSnapshot, settings: ReportSettings | None = None) -> None:
        self.snapshot = snapshot
        self.settings = settings or ReportSettings()
        self._cache: Dict[str, pl.DataFrame] = {}

    @staticmethod
    def _validate_schema(df: pl.DataFrame, required: Sequence[str], entity: str) -> None:
        missing = sorted(set(required).difference(df.columns))
        if missing:
            raise SchemaError(f"Missing required {entity} columns: {missing}")

    def _campaigns(self, required: Sequence[str]) -> pl.DataFrame:
        self._validate_schema(self.snapshot.campaigns, required, "campaign")
        return self.snapshot.campaigns

    def _leads(self, required: Sequence[str]) -> pl.DataFrame:
        self._validate_schema(self.snapshot.leads, required, "lead")
        return self.snapshot.leads

    def _cached(self, key: str, build: Callable[[], pl.DataFrame]) -> pl.DataFrame:
        if key not in self._cache:
            self._cache[key] = build()
        return self._cache[key]

    def campaign_roi(self) -> pl.DataFrame:
        """campaign_id, campaign_name, spend_usd, revenue_usd, roi per campaign."""
        return self._cached(
            "campaign_roi",
            lambda: self._campaigns(self.ROI_COLUMNS).select(
                [
                    pl.col("campaign_id"),
                    pl.col("campaign_name"),
                    pl.col("spend_usd"),
                    pl.col("revenue_usd"),
                    ratio_expr(roi, pl.col("revenue_usd"), pl.col("spend_usd")).alias("roi"),
                ]
            ),
        )

    def conversion_by(self, field: str, count_field: str | None = None) -> pl.DataFrame:
        """Lead volume, conversions and conversion rate per ``field`` value.

        ``count_field`` switches the denominator from count(*) to the non-null
        count of that column.
        """
        required = [field, "converted"] + ([count_field] if count_field else [])
        grouped = aggregate(
            self._leads(required),
            [field],
            {
                "total_leads": count_of(),
                "conversions": sum_of("converted"),
                "__denominator": count_of(count_field),
            },
        )
        return grouped.with_columns(
            safe_div_expr(pl.col("conversions"), pl.col("__denominator")).alias("conversion_rate")
        ).select([field] + self.CONVERSION_FIELDS)

    def conversion_by_campaign(self) -> pl.DataFrame:
        return self._cached("conversion_by_campaign", lambda: self.conversion_by("campaign_id"))

    def cpa_by_campaign(self) -> pl.DataFrame:
        """camp_id, cpa: total lead cost per conversion, null without conversions."""

        def _build() -> pl.DataFrame:
            grouped = aggregate(
                self._leads(self.CPA_COLUMNS),
                ["campaign_id"],
                {"total_cost": sum_of("lead_cost"), "conversions": sum_of("converted")},
            )
            return grouped.select(
                [
                    pl.col("campaign_id").alias("camp_id"),
                    safe_div_expr(pl.col("total_cost"), pl.col("conversions")).alias("cpa"),
                ]
            )

        return self._cached("cpa_by_campaign", _build)

    def average_cpa(self) -> pl.DataFrame:
        """Single row avg_cpa; campaigns whose CPA is null are left out of the mean."""
        return self._cached("average_cpa", lambda: aggregate(self.cpa_by_campaign(), [], {"avg_cpa": mean_of("cpa")}))

    def campaigns_above_average_cpa(self) -> pl.DataFrame:
        campaigns = self._campaigns(["campaign_id", "campaign_name"])
        joined = inner_join(self.cpa_by_campaign(), campaigns, "camp_id", "campaign_id")
        broadcast = cross_join(joined, self.average_cpa())
        # A null on either side compares to null, which the filter drops.
        return broadcast.select(
            [
                pl.col("campaign_name"),
                pl.col("cpa"),
                pl.col("avg_cpa").alias("average"),
            ]
        ).filter(pl.col("cpa") >= pl.col("average"))

    def running_conversions(self) -> pl.DataFrame:
        return running_sum(
            self._leads(self.RUNNING_COLUMNS).select(self.RUNNING_COLUMNS),
            value_field="converted",
            order_by="timestamp",
            partition_by=["campaign_id"],
            alias="running_conversions",
        )

    def first_leads(self) -> pl.DataFrame:
        """Earliest lead of every campaign; equal timestamps resolve by input order."""
        leads = self._leads(LEAD_COLUMNS)
        numbered = row_number(leads, order_by="timestamp", partition_by=["campaign_id"], alias="r_number")
        return numbered.filter(pl.col("r_number") == 1).drop("r_number")

    def lead_cohorts(self) -> pl.DataFrame:
        """cohort_day, lead_count: leads bucketed by the calendar date they were first seen."""
        first_seen = aggregate(self._leads(["lead_id", "timestamp"]), ["lead_id"], {"first_seen": min_of("timestamp")})
        cohorts = first_seen.select(pl.col("first_seen").dt.date().alias("cohort_day"))
        return aggregate(cohorts, ["cohort_day"], {"lead_count": count_of()})

    def campaign_profit(self) -> pl.DataFrame:
        joined = inner_join(
            self._campaigns(self.PROFIT_CAMPAIGN_COLUMNS).select(self.PROFIT_CAMPAIGN_COLUMNS),
            self._leads(self.PROFIT_LEAD_COLUMNS).select(self.PROFIT_LEAD_COLUMNS),
            "campaign_id",
            "campaign_id",
        )
        grouped = aggregate(
            joined,
            ["campaign_id", "campaign_name"],
            {"total_cost": sum_of("lead_cost"), "revenue_usd": max_of("revenue_usd")},
        )
        return grouped.with_columns((pl.col("revenue_usd") - pl.col("total_cost")).alias("profit"))

    def campaign_performance(self) -> pl.DataFrame:
        return self.campaign_profit().with_columns(
            performance_expr(
                pl.col("profit"),
                high_threshold=self.settings.high_profit_threshold,
                medium_threshold=self.settings.medium_profit_threshold,
            ).alias("performance")
        )

    def composite_scores(self) -> pl.DataFrame:
        """Weighted conversion rate + ROI for campaigns present in both tables."""
        score = partial(
            weighted_score,
            conversion_weight=self.settings.conversion_weight,
            roi_weight=self.settings.roi_weight,
        )
        joined = inner_join(
            self.conversion_by_campaign().select(["campaign_id", "conversion_rate"]),
            self.campaign_roi().select(["campaign_id", "campaign_name", "roi"]),
            "campaign_id",
            "campaign_id",
        )
        return joined.with_columns(ratio_expr(score, pl.col("conversion_rate"), pl.col("roi")).alias("score"))

    def conversion_outliers(self) -> pl.DataFrame:
        outlier = conversion_outlier_expr(
            pl.col("conversion_rate"),
            low=self.settings.outlier_low,
            high=self.settings.outlier_high,
        )
        return self.conversion_by("state").filter(outlier)

    def revenue_share(self) -> pl.DataFrame:
        campaigns = self._campaigns(["source", "revenue_usd"])
        by_source = aggregate(campaigns, ["source"], {"source_revenue": sum_of("revenue_usd")})
        total = aggregate(campaigns, [], {"total_revenue": sum_of("revenue_usd")})
        return cross_join(by_source, total).with_columns(
            safe_div_expr(pl.col("source_revenue"), pl.col("total_revenue")).alias("percent_share")
        )
