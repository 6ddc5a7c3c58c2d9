"""Utility functions for kpiflow."""

from kpiflow.utils.date_parser import parse_date_value, period_start
from kpiflow.utils.amount_parser import parse_numeric_value

__all__ = ["parse_date_value", "period_start", "parse_numeric_value"]
