"""Null-propagating decimal arithmetic and its Polars expression adapters."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Context, Decimal, InvalidOperation, localcontext
from typing import Any, Callable

import polars as pl

MONEY_SCALE = 4
RATIO_SCALE = 16
DECIMAL_PRECISION = 38
MONEY_DTYPE = pl.Decimal(DECIMAL_PRECISION, MONEY_SCALE)
RATIO_DTYPE = pl.Decimal(DECIMAL_PRECISION, RATIO_SCALE)

_RATIO_QUANTUM = Decimal(1).scaleb(-RATIO_SCALE)
_MONEY_QUANTUM = Decimal(1).scaleb(-MONEY_SCALE)
# Every digit a Decimal(38, s) column can hold; the interpreter default keeps 28.
_CONTEXT = Context(prec=DECIMAL_PRECISION, rounding=ROUND_HALF_UP)


def to_decimal(value: Any) -> Decimal | None:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return None if value.is_nan() else value
    if isinstance(value, bool):
        return Decimal(int(value))
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return None
        return Decimal(repr(value))
    text = str(value).strip().replace(",", "")
    if not text:
        return None
    try:
        parsed = Decimal(text)
    except InvalidOperation as exc:
        raise ValueError(f"Not a decimal value: {value!r}") from exc
    return None if parsed.is_nan() else parsed


def quantize_ratio(value: Decimal | None) -> Decimal | None:
    if value is None:
        return None
    with localcontext(_CONTEXT):
        return value.quantize(_RATIO_QUANTUM)


def quantize_money(value: Any) -> Decimal | None:
    parsed = to_decimal(value)
    if parsed is None:
        return None
    with localcontext(_CONTEXT):
        return parsed.quantize(_MONEY_QUANTUM)


def safe_div(num: Any, den: Any) -> Decimal | None:
    """Exact quotient, or None when either side is missing or the denominator is zero."""
    numerator = to_decimal(num)
    denominator = to_decimal(den)
    if numerator is None or denominator is None or denominator == 0:
        return None
    with localcontext(_CONTEXT):
        return numerator / denominator


def safe_sub(left: Any, right: Any) -> Decimal | None:
    lhs = to_decimal(left)
    rhs = to_decimal(right)
    if lhs is None or rhs is None:
        return None
    with localcontext(_CONTEXT):
        return lhs - rhs


def safe_lt(value: Any, bound: Any) -> bool:
    lhs = to_decimal(value)
    rhs = to_decimal(bound)
    return lhs is not None and rhs is not None and lhs < rhs


def safe_gt(value: Any, bound: Any) -> bool:
    lhs = to_decimal(value)
    rhs = to_decimal(bound)
    return lhs is not None and rhs is not None and lhs > rhs


def safe_le(value: Any, bound: Any) -> bool:
    return safe_lt(value, bound) or _safe_eq(value, bound)


def safe_ge(value: Any, bound: Any) -> bool:
    return safe_gt(value, bound) or _safe_eq(value, bound)


def _safe_eq(value: Any, bound: Any) -> bool:
    lhs = to_decimal(value)
    rhs = to_decimal(bound)
    return lhs is not None and rhs is not None and lhs == rhs


def roi(revenue: Any, spend: Any) -> Decimal | None:
    return safe_div(safe_sub(revenue, spend), spend)


def weighted_score(
    conversion_rate: Any,
    roi_value: Any,
    conversion_weight: Decimal,
    roi_weight: Decimal,
) -> Decimal | None:
    rate = to_decimal(conversion_rate)
    ret = to_decimal(roi_value)
    if rate is None or ret is None:
        return None
    with localcontext(_CONTEXT):
        return rate * conversion_weight + ret * roi_weight


def lift(fn: Callable[..., Any], *args: pl.Expr, return_dtype: pl.DataType) -> pl.Expr:
    """Apply a scalar helper row by row over one or more expressions.

    Nulls are passed through to ``fn`` as ``None`` so the helper decides how
    they propagate.
    """
    names = [f"arg_{idx}" for idx in range(len(args))]
    packed = pl.struct([arg.alias(name) for arg, name in zip(args, names)])
    return packed.map_elements(
        lambda row: fn(*(row[name] for name in names)),
        return_dtype=return_dtype,
        skip_nulls=False,
    )


def ratio_expr(fn: Callable[..., Decimal | None], *args: pl.Expr) -> pl.Expr:
    return lift(lambda *values: quantize_ratio(fn(*values)), *args, return_dtype=RATIO_DTYPE)


def safe_div_expr(num: pl.Expr, den: pl.Expr) -> pl.Expr:
    return ratio_expr(safe_div, num, den)
