"""Domain layer package."""

from .classification import classify_profit, conversion_outlier_expr, is_conversion_outlier, performance_expr
from .errors import ArityError, ReportError, SchemaError
from .models import Campaign, Lead, MarketingSnapshot

__all__ = [
    "Campaign",
    "Lead",
    "MarketingSnapshot",
    "classify_profit",
    "is_conversion_outlier",
    "performance_expr",
    "conversion_outlier_expr",
    "ReportError",
    "SchemaError",
    "ArityError",
]
