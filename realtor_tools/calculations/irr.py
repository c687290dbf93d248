"""
Hold-Period Returns

IRR, NPV and equity multiple over annual cash flows: the purchase outlay at
year 0, yearly cash flow after debt service, and sale equity added to the
final year.

IRR is found with Newton-Raphson from a 10% guess. When Newton's step
leaves the valid range (rate <= -100%) or stalls on a flat NPV curve, the
root is bracketed and bisected instead.
"""

from typing import List, Sequence
import numpy as np

MAX_ITERATIONS = 100
TOLERANCE = 1e-7
DEFAULT_GUESS = 0.1

# Bisection bracket for annual rates: -99% to +1000%
MIN_RATE = -0.99
MAX_RATE = 10.0


def calculate_npv(cash_flows: Sequence[float], discount_rate: float) -> float:
    """
    Net present value of annual cash flows, year 0 undiscounted.

    Args:
        cash_flows: Yearly flows (negative = outlay)
        discount_rate: Annual rate as a decimal (0.10 for 10%)
    """
    flows = np.asarray(cash_flows, dtype=float)
    years = np.arange(len(flows))
    return float(np.sum(flows / (1 + discount_rate) ** years))


def _npv_slope(flows: np.ndarray, rate: float) -> float:
    years = np.arange(len(flows))
    return float(-np.sum(years * flows / (1 + rate) ** (years + 1)))


def _newton(flows: np.ndarray, guess: float):
    """Newton-Raphson; None if the iteration leaves the valid range or stalls."""
    rate = guess
    for _ in range(MAX_ITERATIONS):
        slope = _npv_slope(flows, rate)
        if abs(slope) < TOLERANCE:
            return None

        next_rate = rate - calculate_npv(flows, rate) / slope
        if next_rate <= -1 or not np.isfinite(next_rate):
            return None
        if abs(next_rate - rate) < TOLERANCE:
            return next_rate
        rate = next_rate
    return None


def _bisect(flows: np.ndarray) -> float:
    low, high = MIN_RATE, MAX_RATE
    npv_low = calculate_npv(flows, low)
    if npv_low * calculate_npv(flows, high) > 0:
        raise ValueError("IRR not found between -99% and 1000%")

    for _ in range(MAX_ITERATIONS * 2):
        mid = (low + high) / 2
        npv_mid = calculate_npv(flows, mid)
        if abs(high - low) < TOLERANCE:
            return mid
        if npv_low * npv_mid <= 0:
            high = mid
        else:
            low, npv_low = mid, npv_mid
    return (low + high) / 2


def calculate_irr(cash_flows: Sequence[float], guess: float = DEFAULT_GUESS) -> float:
    """
    Annual IRR of a hold period.

    Args:
        cash_flows: Year 0 outlay followed by yearly flows
        guess: Starting rate for Newton-Raphson

    Returns:
        IRR as a decimal (0.15 for 15%)

    Raises:
        ValueError: If the flows have no sign change or no rate in the
            bracketed range zeroes the NPV
    """
    flows = np.asarray(cash_flows, dtype=float)
    if len(flows) < 2:
        raise ValueError("At least 2 cash flows required")
    if not (flows > 0).any() or not (flows < 0).any():
        raise ValueError("Cash flows must contain both positive and negative values")

    rate = _newton(flows, guess)
    if rate is None:
        rate = _bisect(flows)
    return rate


def calculate_multiple(cash_flows: List[float]) -> float:
    """Equity multiple: total distributions over total cash invested."""
    flows = np.asarray(cash_flows, dtype=float)
    invested = -flows[flows < 0].sum()
    if invested == 0:
        raise ValueError("No investment (outflows) found")
    return float(flows[flows > 0].sum() / invested)
