"""Utility functions for cashrecon."""

from cashrecon.utils.date_parser import parse_date, get_date_range
from cashrecon.utils.amount_parser import parse_amount
from cashrecon.utils.account_resolver import resolve_account

__all__ = ["parse_date", "get_date_range", "parse_amount", "resolve_account"]
