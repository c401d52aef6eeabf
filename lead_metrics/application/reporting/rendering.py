"""Plain-text table rendering for the CLI."""

from __future__ import annotations

from typing import List

import polars as pl

from lead_metrics.application.reporting.metrics import fmt_value


def render_table(frame: pl.DataFrame, max_rows: int | None = None) -> str:
    columns = frame.columns
    rows = frame.to_dicts() if max_rows is None else frame.head(max_rows).to_dicts()
    cells: List[List[str]] = [[fmt_value(column, row[column]) for column in columns] for row in rows]
    widths = [max([len(column)] + [len(line[idx]) for line in cells]) for idx, column in enumerate(columns)]

    lines = [
        "  ".join(column.ljust(width) for column, width in zip(columns, widths)),
        "  ".join("-" * width for width in widths),
    ]
    for line in cells:
        lines.append("  ".join(text.ljust(width) for text, width in zip(line, widths)))
    if max_rows is not None and frame.height > max_rows:
        lines.append(f"... {frame.height - max_rows} more rows")
    return "\n".join(lines)


def render_report(title: str, frame: pl.DataFrame, max_rows: int | None = None) -> str:
    header = f"== {title} ({frame.height} rows)"
    if frame.is_empty():
        return f"{header}\n(no rows)"
    return f"{header}\n{render_table(frame, max_rows=max_rows)}"
