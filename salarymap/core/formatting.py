"""Helper functions for formatting salaries and income deltas."""

from __future__ import annotations

_UNITS = [
    (1e9, "billion", "B"),
    (1e6, "million", "M"),
    (1e3, "thousand", "k"),
]


def humanize_number(value: int | float, short: bool = False, decimals: int = 1) -> str:
    """Format a number with human-readable units.

    Values below ten thousand are printed with thousands separators instead.
    """
    sign = "-" if value < 0 else ""
    magnitude = abs(value)

    if magnitude < 1e4:
        if float(magnitude).is_integer():
            return f"{sign}{int(magnitude):,}"
        return f"{sign}{magnitude:,.{decimals}f}"

    for threshold, long_name, short_name in _UNITS:
        if magnitude >= threshold:
            if short:
                return f"{sign}{magnitude / threshold:.{decimals}f}{short_name}"
            return f"{sign}{magnitude / threshold:.{decimals}f} {long_name}"

    return f"{sign}{magnitude:,.0f}"


def humanize_currency(
    value: int | float,
    symbol: str = "$",
    short: bool = False,
    decimals: int = 1,
) -> str:
    """Format a dollar amount, e.g. ``$ 84.5k`` with ``short=True``."""
    return f"{symbol} {humanize_number(value, short=short, decimals=decimals)}"


def format_salary(value: int | float | None) -> str:
    """Format a salary as whole dollars with separators; ``None`` becomes a dash."""
    if value is None:
        return "—"
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.0f}"


def format_delta(value: int | float | None) -> str:
    """Format a salary-minus-income delta with an explicit sign."""
    if value is None:
        return "no data"
    prefix = "+" if value >= 0 else "-"
    return f"{prefix}${abs(value):,.0f}"
