"""Campaign/lead loading with Polars-first readers and openpyxl fallback for Excel."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Sequence

import polars as pl

from lead_metrics.domain.errors import SchemaError
from lead_metrics.domain.models import (
    CAMPAIGN_COLUMNS,
    CAMPAIGN_SCHEMA,
    LEAD_COLUMNS,
    LEAD_SCHEMA,
    Campaign,
    Lead,
    MarketingSnapshot,
)

MONEY_COLUMNS: tuple[str, ...] = ("spend_usd", "revenue_usd", "lead_cost")
SUPPORTED_SUFFIXES: tuple[str, ...] = (".csv", ".parquet", ".xlsx")
Records = Iterable[Mapping[str, Any] | Campaign | Lead]


def _import_openpyxl() -> Any:
    try:
        from openpyxl import load_workbook
    except Exception as exc:  # pragma: no cover
        raise RuntimeError("openpyxl is required for Excel fallback I/O.") from exc
    return load_workbook


def _normalize_headers(raw_headers: Sequence[Any]) -> list[str]:
    headers: list[str] = []
    seen: dict[str, int] = {}
    for idx, value in enumerate(raw_headers):
        base = str(value).strip().lower() if value not in (None, "") else f"column_{idx + 1}"
        count = seen.get(base, 0)
        name = base if count == 0 else f"{base}_{count + 1}"
        seen[base] = count + 1
        headers.append(name)
    return headers


def _read_excel_openpyxl(path: Path) -> pl.DataFrame:
    load_workbook = _import_openpyxl()
    workbook = load_workbook(path, read_only=True, data_only=True)
    worksheet = workbook[workbook.sheetnames[0]]
    row_iter = worksheet.iter_rows(values_only=True)
    header_row = next(row_iter, None)
    if header_row is None:
        workbook.close()
        return pl.DataFrame()

    headers = _normalize_headers(header_row)
    records: list[dict[str, Any]] = []
    for values in row_iter:
        if values is None or all(value is None for value in values):
            continue
        records.append({name: (values[idx] if idx < len(values) else None) for idx, name in enumerate(headers)})
    workbook.close()

    if not records:
        return pl.DataFrame({name: [] for name in headers})
    # Cells arrive as mixed Python types; strings keep money columns exact until the schema cast.
    return pl.DataFrame(
        {name: [None if row[name] is None else str(row[name]) for row in records] for name in headers},
        schema={name: pl.String for name in headers},
    )


def _read_frame(path: Path) -> pl.DataFrame:
    suffix = path.suffix.lower()
    if suffix == ".csv":
        # Money columns stay text so the decimal cast never passes through float.
        return pl.read_csv(path, infer_schema=False)
    if suffix == ".parquet":
        return pl.read_parquet(path)
    if suffix == ".xlsx":
        try:
            frame = pl.read_excel(path, infer_schema_length=0)
        except Exception:
            return _read_excel_openpyxl(path)
        return frame.rename({name: new for name, new in zip(frame.columns, _normalize_headers(frame.columns))})
    raise ValueError(f"Unsupported input format '{suffix}', expected one of {list(SUPPORTED_SUFFIXES)}")


def _blank_to_null(expr: pl.Expr) -> pl.Expr:
    stripped = expr.str.strip_chars()
    return pl.when(stripped.str.len_chars() == 0).then(None).otherwise(stripped)


def _money_expr(name: str, dtype: pl.DataType, target: pl.DataType) -> pl.Expr:
    col = pl.col(name)
    if dtype == pl.String:
        return _blank_to_null(col).str.replace_all(",", "").cast(target)
    return col.cast(target)


def _timestamp_expr(name: str, dtype: pl.DataType) -> pl.Expr:
    col = pl.col(name)
    if dtype == pl.String:
        # Offsets parse to UTC; the engine keeps naive UTC timestamps.
        return _blank_to_null(col).str.to_datetime(time_unit="us").dt.replace_time_zone(None)
    if isinstance(dtype, pl.Datetime) and dtype.time_zone is not None:
        return col.dt.convert_time_zone("UTC").dt.replace_time_zone(None).cast(pl.Datetime("us"))
    return col.cast(pl.Datetime("us"))


def _flag_expr(name: str, dtype: pl.DataType) -> pl.Expr:
    col = pl.col(name)
    if dtype == pl.String:
        text = _blank_to_null(col).str.to_lowercase()
        return (
            pl.when(text.is_in(["true", "yes"]))
            .then(pl.lit("1"))
            .when(text.is_in(["false", "no"]))
            .then(pl.lit("0"))
            .otherwise(text)
            .cast(pl.Int64)
        )
    return col.cast(pl.Int64)


def _plain_expr(name: str, dtype: pl.DataType, target: pl.DataType) -> pl.Expr:
    col = pl.col(name)
    if dtype == pl.String and target != pl.String:
        return _blank_to_null(col).cast(target)
    return col.cast(target)


def _normalize(frame: pl.DataFrame, schema: Dict[str, pl.DataType], entity: str) -> pl.DataFrame:
    renamed = frame.rename({name: new for name, new in zip(frame.columns, _normalize_headers(frame.columns))})
    missing = sorted(set(schema).difference(renamed.columns))
    if missing:
        raise SchemaError(f"Missing required {entity} columns: {missing}")

    exprs: list[pl.Expr] = []
    for name, target in schema.items():
        dtype = renamed.schema[name]
        if name in MONEY_COLUMNS:
            expr = _money_expr(name, dtype, target)
        elif name == "timestamp":
            expr = _timestamp_expr(name, dtype)
        elif name == "converted":
            expr = _flag_expr(name, dtype)
        else:
            expr = _plain_expr(name, dtype, target)
        exprs.append(expr.alias(name))

    try:
        return renamed.select(exprs)
    except pl.exceptions.PolarsError as exc:
        raise SchemaError(f"Invalid {entity} values: {exc}") from exc


def normalize_campaigns(frame: pl.DataFrame) -> pl.DataFrame:
    """Coerce a raw campaign frame to the engine schema, dropping extra columns."""
    return _normalize(frame, CAMPAIGN_SCHEMA, "campaign")


def normalize_leads(frame: pl.DataFrame) -> pl.DataFrame:
    """Coerce a raw lead frame to the engine schema, dropping extra columns."""
    return _normalize(frame, LEAD_SCHEMA, "lead")


def _rows(records: Records, record_type: type) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for record in records:
        if isinstance(record, record_type):
            rows.append(record.as_row())  # type: ignore[attr-defined]
            continue
        try:
            rows.append(record_type.from_row(record).as_row())  # type: ignore[attr-defined]
        except (TypeError, ValueError) as exc:
            raise SchemaError(f"Invalid {record_type.__name__.lower()} record {dict(record)!r}: {exc}") from exc
    return rows


def campaigns_frame(records: Records) -> pl.DataFrame:
    rows = _rows(records, Campaign)
    return pl.DataFrame({name: [row[name] for row in rows] for name in CAMPAIGN_COLUMNS}, schema=CAMPAIGN_SCHEMA)


def leads_frame(records: Records) -> pl.DataFrame:
    rows = _rows(records, Lead)
    return pl.DataFrame({name: [row[name] for row in rows] for name in LEAD_COLUMNS}, schema=LEAD_SCHEMA)


def build_snapshot(
    campaigns: pl.DataFrame | Records,
    leads: pl.DataFrame | Records,
) -> MarketingSnapshot:
    """Bundle campaigns and leads, given as raw frames or record iterables."""
    campaign_df = normalize_campaigns(campaigns) if isinstance(campaigns, pl.DataFrame) else campaigns_frame(campaigns)
    lead_df = normalize_leads(leads) if isinstance(leads, pl.DataFrame) else leads_frame(leads)
    return MarketingSnapshot(campaigns=campaign_df, leads=lead_df)


def read_campaigns(path: str | Path) -> pl.DataFrame:
    input_path = Path(path)
    if not input_path.exists():
        raise FileNotFoundError(f"Campaign file not found: {input_path}")
    return normalize_campaigns(_read_frame(input_path))


def read_leads(path: str | Path) -> pl.DataFrame:
    input_path = Path(path)
    if not input_path.exists():
        raise FileNotFoundError(f"Lead file not found: {input_path}")
    return normalize_leads(_read_frame(input_path))
