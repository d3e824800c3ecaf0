"""Utility functions for groomreports."""

from groomreports.utils.date_parser import parse_date, parse_datetime, parse_time
from groomreports.utils.amount_parser import parse_amount, to_cents
from groomreports.utils.business_time import business_today

__all__ = [
    "parse_date",
    "parse_datetime",
    "parse_time",
    "parse_amount",
    "to_cents",
    "business_today",
]
