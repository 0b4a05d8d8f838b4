import logging
from dataclasses import dataclass, field
from typing import List, Optional

from corpus import required_corpus
from rates import monthly_rate, annuity_fv_factor
from simulation import (PlanInput, ProjectionPoint, simulate, balance_at, final_balance,
                        peak_balance, years_funded)

logger = logging.getLogger(__name__)

# Return and step-up rates closer than this are treated as equal
GROWTH_EPS = 1e-4


@dataclass(frozen=True)
class AdditionalSavings:
    fixed_monthly: float = 0.0
    step_up_monthly: float = 0.0


@dataclass(frozen=True)
class PlanSummary:
    required_corpus: float
    balance_at_retirement: float
    shortfall: float
    additional_savings: AdditionalSavings = field(default_factory=AdditionalSavings)
    final_balance: float = 0.0
    peak_balance: float = 0.0
    years_funded: int = 0
    on_track: bool = False


def shortfall(required: float, actual: float) -> float:
    return max(0.0, required - actual)


def top_up(gap: float, plan: PlanInput) -> AdditionalSavings:
    """
    Extra monthly saving, starting today, that grows into `gap` by retirement.

    Two alternatives are solved by inverting the future value of an annuity:
    - fixed: the same amount every month
    - step-up: a first-year amount that grows by step_up_pct every 12 months
    Payments are made at month end and compound monthly at the expected return.
    """
    if gap <= 0:
        return AdditionalSavings()
    years = plan.retirement_age - plan.current_age
    if years <= 0:
        return AdditionalSavings()

    annual = plan.expected_return_pct / 100.0
    step = plan.step_up_pct / 100.0
    r_m = monthly_rate(plan.expected_return_pct)

    fixed = gap / annuity_fv_factor(r_m, years * 12)

    # Value at year end of 1 per month for 12 months
    c = annuity_fv_factor(r_m, 12)
    if abs(annual - step) < GROWTH_EPS:
        stepped = gap / (c * years)
    else:
        stepped = gap * (annual - step) / (c * ((1 + annual) ** years - (1 + step) ** years))

    return AdditionalSavings(fixed_monthly=fixed, step_up_monthly=stepped)


def assess(plan: PlanInput, points: Optional[List[ProjectionPoint]] = None) -> PlanSummary:
    """Headline numbers for a plan. Pass `points` to reuse an existing simulation."""
    if points is None:
        points = simulate(plan)
    required = required_corpus(plan)
    at_retirement = balance_at(points, plan.retirement_age)
    gap = shortfall(required, at_retirement)
    final = final_balance(points)
    summary = PlanSummary(
        required_corpus=required,
        balance_at_retirement=at_retirement,
        shortfall=gap,
        additional_savings=top_up(gap, plan),
        final_balance=final,
        peak_balance=peak_balance(points),
        years_funded=years_funded(points, plan),
        on_track=final > 0,
    )
    logger.debug("Plan assessed: required=%.0f at_retirement=%.0f shortfall=%.0f",
                 required, at_retirement, gap)
    return summary
