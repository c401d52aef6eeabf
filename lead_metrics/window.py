"""Partitioned window functions: rank, row_number and running_sum."""

from __future__ import annotations

from typing import Iterable, List

import polars as pl

from lead_metrics.domain.errors import SchemaError

_ROW_INDEX = "__row_index"
_POSITION = "__position"
_NEW_PEER = "__new_peer"


def _validate_schema(frame: pl.DataFrame, required: Iterable[str]) -> None:
    missing = sorted(set(required).difference(frame.columns))
    if missing:
        raise SchemaError(f"Missing required columns: {missing}")


def _over(expr: pl.Expr, partition_by: List[str]) -> pl.Expr:
    if not partition_by:
        return expr
    return expr.over(partition_by)


def _position_expr(partition_by: List[str]) -> pl.Expr:
    return _over(pl.int_range(1, pl.len() + 1, dtype=pl.Int64), partition_by)


def _ordered(frame: pl.DataFrame, order_by: str, descending: bool) -> pl.DataFrame:
    # Stable sort keeps input order among peers; nulls always go last.
    return frame.with_row_index(_ROW_INDEX).sort(
        order_by,
        descending=descending,
        nulls_last=True,
        maintain_order=True,
    )


def _restore(frame: pl.DataFrame) -> pl.DataFrame:
    return frame.sort(_ROW_INDEX).drop(_ROW_INDEX)


def rank(
    frame: pl.DataFrame,
    order_by: str,
    partition_by: Iterable[str] = (),
    descending: bool = False,
    alias: str = "rank",
) -> pl.DataFrame:
    """Competition rank (1, 1, 3) of ``order_by`` within each partition.

    Peers share the lowest position of their run; nulls rank after every
    value and tie with each other.
    """
    partitions = list(partition_by)
    _validate_schema(frame, partitions + [order_by])

    previous = _over(pl.col(order_by).shift(1), partitions)
    ranked = (
        _ordered(frame, order_by, descending)
        .with_columns(
            [
                _position_expr(partitions).alias(_POSITION),
                previous.alias(_NEW_PEER),
            ]
        )
        .with_columns(
            ((pl.col(_POSITION) == 1) | pl.col(order_by).ne_missing(pl.col(_NEW_PEER))).alias(_NEW_PEER)
        )
        .with_columns(
            _over(
                pl.when(pl.col(_NEW_PEER)).then(pl.col(_POSITION)).otherwise(None).forward_fill(),
                partitions,
            ).alias(alias)
        )
        .drop([_POSITION, _NEW_PEER])
    )
    return _restore(ranked)


def row_number(
    frame: pl.DataFrame,
    order_by: str,
    partition_by: Iterable[str] = (),
    alias: str = "row_number",
) -> pl.DataFrame:
    """Sequential 1-based position by ascending ``order_by``; ties keep input order."""
    partitions = list(partition_by)
    _validate_schema(frame, partitions + [order_by])

    numbered = _ordered(frame, order_by, descending=False).with_columns(_position_expr(partitions).alias(alias))
    return _restore(numbered)


def running_sum(
    frame: pl.DataFrame,
    value_field: str,
    order_by: str,
    partition_by: Iterable[str] = (),
    alias: str = "running_sum",
) -> pl.DataFrame:
    """Cumulative sum from the first row of the partition through the current row.

    Null values add nothing; the total stays null until the first non-null value.
    """
    partitions = list(partition_by)
    _validate_schema(frame, partitions + [order_by, value_field])

    # cum_sum leaves null rows null; forward_fill carries the previous total onto them.
    cumulative = _over(pl.col(value_field).cum_sum().forward_fill(), partitions)
    summed = _ordered(frame, order_by, descending=False).with_columns(cumulative.alias(alias))
    return _restore(summed)
