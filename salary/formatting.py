# salary/formatting.py
import math
from typing import Optional

from salary.reference_data import LocationTables, load_location_tables


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (salary figures)"""
    return int(math.floor(value + 0.5))


def format_amount(amount: int, currency: str, tables: Optional[LocationTables] = None) -> str:
    """Format a single salary figure in the currency's display convention"""
    tables = tables or load_location_tables()
    info = tables.currency_info(currency)
    symbol = info.symbol if info else currency
    style = info.format if info else 'k'

    if style == 'lakh':
        if amount >= 100000:
            return f"{symbol}{amount / 100000:.1f}L"
        return f"{symbol}{round_half_up(amount / 1000)}k"

    if amount >= 1000:
        return f"{symbol}{round_half_up(amount / 1000)}k"
    return f"{symbol}{amount}"


def format_label(salary_min: int, salary_max: int, currency: str,
                 tables: Optional[LocationTables] = None) -> str:
    """
    Display label for a salary range

    ₹12.0L - ₹18.5L for INR, $120k - $150k for USD; a single value when
    min equals max.
    """
    if salary_min == salary_max:
        return format_amount(salary_min, currency, tables)
    return f"{format_amount(salary_min, currency, tables)} - {format_amount(salary_max, currency, tables)}"
