"""Per-user monthly pivot for the provisioning history report.

Raw rows arrive sparse and in any order, one (username, year_month, count)
per observed combination. The builder turns them into one dense row per user
with a cell for every month of the window, sorted by total descending.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from backend.services.month_window import parse_year_month

logger = logging.getLogger(__name__)


class InvalidRawRowError(ValueError):
    """Raised in strict mode when an input row is malformed."""


@dataclass(frozen=True)
class RawCountRow:
    username: str
    year_month: str
    count: int


@dataclass(frozen=True)
class MonthEntry:
    year_month: str
    count: int


@dataclass(frozen=True)
class UserPivotRow:
    username: str
    month_data: tuple[MonthEntry, ...]
    total: int


@dataclass(frozen=True)
class ReportPayload:
    rows: tuple[UserPivotRow, ...]
    month_window: tuple[str, ...]


def validate_raw_row(row: RawCountRow) -> str | None:
    """Return a reason string when the row is malformed, otherwise None."""

    if not isinstance(row.username, str) or not row.username:
        return "username is empty"
    if isinstance(row.count, bool) or not isinstance(row.count, int):
        return "count is not an integer"
    if row.count < 0:
        return "count is negative"
    if not isinstance(row.year_month, str):
        return "year_month is not a string"
    try:
        parse_year_month(row.year_month)
    except ValueError:
        return "year_month is not a valid YYYY-MM value"
    return None


def build_pivot(
    raw_rows: Iterable[RawCountRow],
    window: tuple[str, ...],
    *,
    strict: bool = False,
    reconcile_totals: bool = False,
) -> ReportPayload:
    """Merge raw rows and the month window into a sorted ReportPayload.

    Duplicate (username, year_month) rows keep the last count in the cell but
    every count is added to the total. Pass reconcile_totals=True to recompute
    totals from the cells instead.

    Raises:
        InvalidRawRowError: If strict is set and any row is malformed.
    """

    window = tuple(window)
    month_positions = {year_month: index for index, year_month in enumerate(window)}

    # username -> [cells, total]; dict keeps first-encounter order.
    index: dict[str, list] = {}

    for row in raw_rows:
        reason = validate_raw_row(row)
        if reason is not None:
            if strict:
                raise InvalidRawRowError(f"Malformed row {row!r}: {reason}")
            logger.warning("Skipping malformed row %r: %s", row, reason)
            continue

        entry = index.get(row.username)
        if entry is None:
            entry = [[0] * len(window), 0]
            index[row.username] = entry

        position = month_positions.get(row.year_month)
        if position is None:
            logger.debug(
                "Dropping row for %s outside window: %s", row.username, row.year_month
            )
            continue

        entry[0][position] = row.count
        entry[1] += row.count

    rows: list[UserPivotRow] = []
    for username, (cells, total) in index.items():
        if reconcile_totals:
            total = sum(cells)
        rows.append(
            UserPivotRow(
                username=username,
                month_data=tuple(
                    MonthEntry(year_month=year_month, count=count)
                    for year_month, count in zip(window, cells)
                ),
                total=total,
            )
        )

    rows = sorted(rows, key=lambda pivot_row: pivot_row.total, reverse=True)
    return ReportPayload(rows=tuple(rows), month_window=window)
