"""Play-money amount helpers.

Pools, shares and balances are IEEE doubles in one currency unit (1 winning
share settles for 1.0). Nothing here rounds stored values; rounding is for
display only.
"""

import math

from src.pm_common.errors import InvalidAmountError

# Absolute tolerance for comparing accumulated float quantities (k, sums of payouts).
FLOAT_TOLERANCE = 1e-6


def require_positive(value: float, name: str = "amount") -> None:
    """Raise InvalidAmountError unless value is a finite number > 0."""
    if not math.isfinite(value) or value <= 0:
        raise InvalidAmountError(f"{name} must be a positive finite number, got {value}")


def amount_to_display(amount: float) -> str:
    """Format an amount for display: 1234.5 -> '$1,234.50', -12 -> '-$12.00'."""
    if amount < 0:
        return f"-${-amount:,.2f}"
    return f"${amount:,.2f}"


def almost_equal(a: float, b: float, rel_tol: float = 1e-9) -> bool:
    return math.isclose(a, b, rel_tol=rel_tol, abs_tol=FLOAT_TOLERANCE)
