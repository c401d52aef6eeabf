"""Inner equi-join and singleton broadcast join."""

from __future__ import annotations

import polars as pl

from lead_metrics.domain.errors import ArityError, SchemaError

JOIN_SUFFIX = "_right"


def inner_join(left: pl.DataFrame, right: pl.DataFrame, left_key: str, right_key: str) -> pl.DataFrame:
    """Rows sharing a key on both sides. Null keys never match each other.

    The output keeps ``left_key``; ``right_key`` is folded into it.
    """
    if left_key not in left.columns:
        raise SchemaError(f"Missing required columns: ['{left_key}']")
    if right_key not in right.columns:
        raise SchemaError(f"Missing required columns: ['{right_key}']")
    return left.join(right, left_on=left_key, right_on=right_key, how="inner", suffix=JOIN_SUFFIX)


def cross_join(left: pl.DataFrame, right_singleton: pl.DataFrame) -> pl.DataFrame:
    """Attach the single row of ``right_singleton`` to every row of ``left``."""
    if right_singleton.height != 1:
        raise ArityError(f"Broadcast side must hold exactly one row, got {right_singleton.height}")
    return left.join(right_singleton, how="cross", suffix=JOIN_SUFFIX)
