from decimal import Decimal
import pytest

from attendance.core import round_hours, sum_hours, percentage, mean


@pytest.mark.parametrize(
    "value,expected",
    [
        (Decimal("8.5"), 8.5),
        (Decimal("0.166666"), 0.17),
        # half-way values round up, unlike float round()
        (2.345, 2.35),
        ("1.005", 1.01),
        (0, 0.0),
    ],
)
def test_round_hours(value, expected):
    assert round_hours(value) == expected


def test_sum_hours_skips_none_and_rounds_once():
    assert sum_hours([0.1, 0.1, 0.1]) == 0.3
    assert sum_hours([None, 8.5, None, 4.25]) == 12.75
    assert sum_hours([]) == 0.0


def test_sum_hours_rounds_total_not_each_item():
    # 3 x 0.335 = 1.005 -> 1.01; rounding each item first would give 1.02
    assert sum_hours([Decimal("0.335")] * 3) == 1.01


def test_percentage():
    assert percentage(8.5, 211.5) == 4.02
    assert percentage(250, 200) == 125.0
    assert percentage(10, 0) == 0.0


def test_mean():
    assert mean([4.02, 0]) == 2.01
    assert mean([]) == 0.0
