"""
Rate conversions and time-value-of-money primitives.

Annual percentages are converted to monthly rates by compounding,
i.e. (1 + annual) ** (1/12) - 1, so twelve monthly steps reproduce the annual rate.
"""

# Below this a periodic rate is treated as zero
RATE_EPS = 1e-12


def monthly_rate(annual_pct: float) -> float:
    return (1 + annual_pct / 100.0) ** (1 / 12.0) - 1


def real_rate(return_pct: float, inflation_pct: float) -> float:
    """Return in excess of inflation, (1 + r) / (1 + i) - 1."""
    return (1 + return_pct / 100.0) / (1 + inflation_pct / 100.0) - 1


def future_value(amount: float, rate: float, periods: float) -> float:
    return amount * (1 + rate) ** periods


def present_value(amount: float, rate: float, periods: float) -> float:
    return amount / (1 + rate) ** periods


def annuity_fv_factor(rate: float, periods: int) -> float:
    """
    Future value of 1 paid at the end of each period.
    Uses the linear limit (one unit per period) when the rate is ~0.
    """
    if abs(rate) < RATE_EPS:
        return float(periods)
    return ((1 + rate) ** periods - 1) / rate
