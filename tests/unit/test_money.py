"""Unit tests for play-money helpers."""

import pytest

from src.pm_common.errors import InvalidAmountError
from src.pm_common.money import almost_equal, amount_to_display, require_positive


@pytest.mark.parametrize("value", [0, -0.01, float("nan"), float("inf"), float("-inf")])
def test_require_positive_rejects(value: float) -> None:
    with pytest.raises(InvalidAmountError):
        require_positive(value)


def test_require_positive_accepts_tiny_values() -> None:
    require_positive(1e-12)


@pytest.mark.parametrize(
    "amount,expected",
    [(0, "$0.00"), (1234.5, "$1,234.50"), (-12, "-$12.00"), (0.004, "$0.00")],
)
def test_amount_to_display(amount: float, expected: str) -> None:
    assert amount_to_display(amount) == expected


def test_almost_equal_tolerates_float_noise() -> None:
    assert almost_equal(0.1 + 0.2, 0.3)
    assert not almost_equal(1.0, 1.001)
