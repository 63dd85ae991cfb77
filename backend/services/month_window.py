from datetime import date
from datetime import datetime

WINDOW_SIZE = 12


class InvalidReferenceDateError(ValueError):
    """Raised when the report reference date cannot be interpreted."""


def add_months(month_start: date, delta_months: int) -> date:
    """Shift a first-of-month date by a number of months (year-boundary safe)."""

    year = month_start.year + (month_start.month - 1 + delta_months) // 12
    month = (month_start.month - 1 + delta_months) % 12 + 1
    return date(year, month, 1)


def format_year_month(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def parse_year_month(raw_value: str) -> date:
    """Parse a "YYYY-MM" token into the first day of that month."""

    if len(raw_value) != 7 or raw_value[4] != "-":
        raise ValueError(f"Invalid year-month value: {raw_value!r}")
    return date.fromisoformat(f"{raw_value}-01")


def _coerce_reference_date(reference_date: date | datetime | str) -> date:
    if isinstance(reference_date, datetime):
        return reference_date.date()
    if isinstance(reference_date, date):
        return reference_date
    if isinstance(reference_date, str):
        try:
            return date.fromisoformat(reference_date)
        except ValueError as exc:
            raise InvalidReferenceDateError(
                f"Invalid reference date: {reference_date!r}"
            ) from exc
    raise InvalidReferenceDateError(f"Invalid reference date: {reference_date!r}")


def generate_month_window(reference_date: date | datetime | str) -> tuple[str, ...]:
    """Return the trailing completed months before reference_date, oldest first.

    The month containing reference_date is never included.
    """

    current_month = _coerce_reference_date(reference_date).replace(day=1)
    months = [
        format_year_month(add_months(current_month, -offset))
        for offset in range(1, WINDOW_SIZE + 1)
    ]
    months.reverse()
    return tuple(months)


def window_bounds(window: tuple[str, ...]) -> tuple[date, date]:
    """Return (first day of oldest month, first day after newest month)."""

    if not window:
        raise ValueError("Month window is empty")
    start = parse_year_month(window[0])
    end = add_months(parse_year_month(window[-1]), 1)
    return start, end
