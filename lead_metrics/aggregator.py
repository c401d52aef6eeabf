"""Grouped reductions over Polars frames with SQL null semantics."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Mapping, Sequence

import polars as pl

from lead_metrics.arithmetic import safe_div_expr
from lead_metrics.domain.errors import SchemaError

REDUCER_KINDS = ("count", "sum", "max", "min", "first_by", "mean")


@dataclass(frozen=True)
class Reducer:
    kind: str
    field: str | None = None
    order_field: str | None = None

    def __post_init__(self) -> None:
        if self.kind not in REDUCER_KINDS:
            raise ValueError(f"Unknown reducer: {self.kind}")
        if self.kind != "count" and self.field is None:
            raise ValueError(f"Reducer '{self.kind}' needs an input field")
        if self.kind == "first_by" and self.order_field is None:
            raise ValueError("Reducer 'first_by' needs an order field")

    def input_fields(self) -> List[str]:
        return [name for name in (self.field, self.order_field) if name is not None]


def count_of(field: str | None = None) -> Reducer:
    """count(*) when ``field`` is None, otherwise the non-null count of ``field``."""
    return Reducer("count", field)


def sum_of(field: str) -> Reducer:
    return Reducer("sum", field)


def max_of(field: str) -> Reducer:
    return Reducer("max", field)


def min_of(field: str) -> Reducer:
    return Reducer("min", field)


def first_by(field: str, order_field: str) -> Reducer:
    return Reducer("first_by", field, order_field)


def mean_of(field: str) -> Reducer:
    return Reducer("mean", field)


def _mean_parts(out_field: str) -> tuple[str, str]:
    return f"__{out_field}_sum", f"__{out_field}_count"


def _reduction_exprs(out_field: str, reducer: Reducer) -> List[pl.Expr]:
    if reducer.kind == "count":
        if reducer.field is None:
            return [pl.len().cast(pl.Int64).alias(out_field)]
        return [pl.col(reducer.field).count().cast(pl.Int64).alias(out_field)]

    col = pl.col(reducer.field)  # type: ignore[arg-type]
    if reducer.kind == "sum":
        # SUM over no non-null values is NULL, not zero.
        return [pl.when(col.count() > 0).then(col.sum()).otherwise(None).alias(out_field)]
    if reducer.kind == "max":
        return [col.max().alias(out_field)]
    if reducer.kind == "min":
        return [col.min().alias(out_field)]
    if reducer.kind == "first_by":
        order = pl.col(reducer.order_field)  # type: ignore[arg-type]
        return [col.sort_by(order, nulls_last=True, maintain_order=True).first().alias(out_field)]

    sum_name, count_name = _mean_parts(out_field)
    return [col.sum().alias(sum_name), col.count().alias(count_name)]


def _validate_schema(frame: pl.DataFrame, group_by: Sequence[str], reducers: Mapping[str, Reducer]) -> None:
    required = set(group_by)
    for reducer in reducers.values():
        required.update(reducer.input_fields())
    missing = sorted(required.difference(frame.columns))
    if missing:
        raise SchemaError(f"Missing required columns: {missing}")


def aggregate(
    frame: pl.DataFrame,
    group_by: Iterable[str],
    reducers: Mapping[str, Reducer],
) -> pl.DataFrame:
    """Reduce ``frame`` to one row per distinct ``group_by`` tuple.

    Null keys form their own group. With an empty ``group_by`` the whole frame
    is one group and exactly one row comes back, even for empty input. Output
    row order is unspecified; sort downstream.
    """
    keys = list(group_by)
    if not reducers:
        raise ValueError("aggregate needs at least one reducer")
    _validate_schema(frame, keys, reducers)

    exprs: List[pl.Expr] = []
    for out_field, reducer in reducers.items():
        exprs.extend(_reduction_exprs(out_field, reducer))

    if keys:
        reduced = frame.group_by(keys).agg(exprs)
    else:
        reduced = frame.select(exprs)

    mean_fields = [name for name, reducer in reducers.items() if reducer.kind == "mean"]
    if not mean_fields:
        return reduced.select(keys + list(reducers))

    temporary: List[str] = []
    mean_exprs: List[pl.Expr] = []
    for out_field in mean_fields:
        sum_name, count_name = _mean_parts(out_field)
        temporary.extend([sum_name, count_name])
        mean_exprs.append(safe_div_expr(pl.col(sum_name), pl.col(count_name)).alias(out_field))
    return reduced.with_columns(mean_exprs).drop(temporary).select(keys + list(reducers))
