"""Year formatting for display.

Negative years are shown as their absolute value with a ``BC`` suffix rather
than with a sign; ranges are joined with a hyphen.

>>> format_year(-44)
'44 BC'
>>> format_year_range(-27, 476)
'27 BC-476'
"""

from __future__ import annotations


def format_year(year: int) -> str:
    if year < 0:
        return f"{abs(year)} BC"
    return str(year)


def format_year_range(year: int, end_year: int | None = None) -> str:
    """Return ``start-end`` when an end year is present, else just the start."""
    if end_year is not None:
        return f"{format_year(year)}-{format_year(end_year)}"
    return format_year(year)


__all__ = ["format_year", "format_year_range"]
