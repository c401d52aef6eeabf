"""Ordering and top-N selection helpers for report frames."""

from __future__ import annotations

from typing import Sequence, Tuple

import polars as pl

SortKey = Tuple[str, bool]


def order_rows(frame: pl.DataFrame, order_by: Sequence[SortKey]) -> pl.DataFrame:
    """Stable multi-key sort; nulls go last whatever the direction."""
    if not order_by:
        return frame
    return frame.sort(
        [column for column, _ in order_by],
        descending=[descending for _, descending in order_by],
        nulls_last=True,
        maintain_order=True,
    )


def limit_rows(
    frame: pl.DataFrame,
    limit: int | None,
    rank_column: str | None = None,
    include_ties: bool = False,
) -> pl.DataFrame:
    """Keep the first ``limit`` rows of an already ordered frame.

    With ``include_ties`` and a ``rank_column`` every row ranked within the
    limit survives, so a tie straddling the cut keeps all of its peers.
    """
    if limit is None:
        return frame
    if limit < 0:
        raise ValueError(f"limit must be >= 0, got {limit}")
    if include_ties and rank_column is not None:
        return frame.filter(pl.col(rank_column) <= limit)
    return frame.head(limit)
