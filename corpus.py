from typing import List, Tuple

from rates import real_rate, present_value
from simulation import PlanInput

# Below this the real rate is treated as zero (spending simply adds up)
REAL_RATE_EPS = 1e-4


def initial_retirement_spending(plan: PlanInput) -> float:
    """Annual spending in the first retirement year, inflated from today's prices."""
    years_to_retire = plan.retirement_age - plan.current_age
    return plan.monthly_spending_today * 12 * (1 + plan.inflation_pct / 100.0) ** years_to_retire


def bucket_blocks(plan: PlanInput) -> List[Tuple[int, int]]:
    """(start year, length) of each bucket over retirement; the last one may be short."""
    years = plan.life_expectancy - plan.retirement_age
    size = plan.bucket_years
    return [(start, min(size, years - start)) for start in range(0, max(0, years), size)]


def required_corpus(plan: PlanInput) -> float:
    """
    Lump sum needed on retirement day to fund spending until life expectancy.

    Spending keeps pace with inflation, so the money only has to earn the real rate.
    - normal: present value of an inflation-linked annuity-due
    - bucket: each block of spending is set aside in full when its bucket starts,
      and waits in the growth sleeve (earning the real rate) until then
    """
    years = plan.life_expectancy - plan.retirement_age
    if years <= 0:
        return 0.0

    spending = initial_retirement_spending(plan)
    real = real_rate(plan.expected_return_pct, plan.inflation_pct)

    if plan.is_bucket:
        return sum(present_value(spending * length, real, start)
                   for start, length in bucket_blocks(plan))

    if abs(real) < REAL_RATE_EPS:
        return spending * years
    return spending * (1 - (1 + real) ** -years) / (real / (1 + real))
