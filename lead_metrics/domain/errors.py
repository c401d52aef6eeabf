"""Structural failures that abort a single report."""

from __future__ import annotations


class ReportError(ValueError):
    """Base class for failures that make a report uncomputable."""


class SchemaError(ReportError):
    """A required column is missing or its values do not fit the schema."""


class ArityError(ReportError):
    """A broadcast join side does not hold exactly one row."""
