from datetime import date
from datetime import datetime

import pytest

from backend.services.month_window import InvalidReferenceDateError
from backend.services.month_window import add_months
from backend.services.month_window import generate_month_window
from backend.services.month_window import window_bounds


@pytest.mark.parametrize(
    "reference_date",
    [
        date(2024, 1, 1),
        date(2024, 3, 31),
        date(2024, 12, 31),
        date(2023, 2, 28),
        date(2000, 2, 29),
        date(2026, 10, 18),
    ],
)
def test_window_has_twelve_ascending_months_before_reference(reference_date: date) -> None:
    window = generate_month_window(reference_date)
    current = f"{reference_date.year:04d}-{reference_date.month:02d}"
    previous = add_months(reference_date.replace(day=1), -1)

    assert len(window) == 12
    assert len(set(window)) == 12
    assert list(window) == sorted(window)
    assert current not in window
    assert window[-1] == f"{previous.year:04d}-{previous.month:02d}"


def test_window_crosses_year_boundary() -> None:
    window = generate_month_window("2025-02-15")

    assert window == (
        "2024-02",
        "2024-03",
        "2024-04",
        "2024-05",
        "2024-06",
        "2024-07",
        "2024-08",
        "2024-09",
        "2024-10",
        "2024-11",
        "2024-12",
        "2025-01",
    )


def test_window_in_january_ends_in_previous_december() -> None:
    window = generate_month_window(date(2025, 1, 3))

    assert window[0] == "2024-01"
    assert window[-1] == "2024-12"


def test_window_accepts_datetime_reference() -> None:
    assert generate_month_window(datetime(2025, 2, 15, 23, 59)) == generate_month_window(
        date(2025, 2, 15)
    )


@pytest.mark.parametrize("bad_value", ["2025-13-01", "not-a-date", "", None, 20250215])
def test_window_rejects_invalid_reference_date(bad_value) -> None:
    with pytest.raises(InvalidReferenceDateError):
        generate_month_window(bad_value)


def test_add_months_handles_year_rollover() -> None:
    assert add_months(date(2024, 12, 1), 1) == date(2025, 1, 1)
    assert add_months(date(2024, 1, 1), -1) == date(2023, 12, 1)
    assert add_months(date(2024, 3, 1), -14) == date(2023, 1, 1)


def test_window_bounds_cover_whole_window() -> None:
    window = generate_month_window(date(2025, 2, 15))

    assert window_bounds(window) == (date(2024, 2, 1), date(2025, 2, 1))


def test_window_bounds_rejects_empty_window() -> None:
    with pytest.raises(ValueError):
        window_bounds(())
