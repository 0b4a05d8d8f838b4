import logging
from dataclasses import dataclass, asdict
from datetime import date
from typing import List, Optional

import numpy as np
import pandas as pd
from dateutil.relativedelta import relativedelta

from rates import monthly_rate

logger = logging.getLogger(__name__)

FIXED = "fixed"
STEP_UP = "step-up"
NORMAL = "normal"
BUCKET = "bucket"


@dataclass(frozen=True)
class PlanInput:
    current_age: int
    retirement_age: int
    life_expectancy: int
    current_savings: float
    monthly_contribution: float
    expected_return_pct: float   # nominal, per year
    inflation_pct: float         # per year
    monthly_spending_today: float
    contribution_type: str = FIXED   # "fixed" or "step-up"
    step_up_pct: float = 0.0         # contribution growth per year
    strategy: str = NORMAL           # "normal" or "bucket"
    bucket_size_years: int = 1

    @property
    def bucket_years(self) -> int:
        return max(1, int(self.bucket_size_years))

    @property
    def is_bucket(self) -> bool:
        return self.strategy == BUCKET


@dataclass(frozen=True)
class ProjectionPoint:
    age: int
    total_balance: float
    growth_balance: float
    safe_balance: float
    annual_expense: float
    is_retired: bool


def check_plan(plan: PlanInput) -> List[str]:
    """Problems that make a plan meaningless. The solvers themselves never validate."""
    problems = []
    values = [plan.current_savings, plan.monthly_contribution, plan.expected_return_pct,
              plan.inflation_pct, plan.monthly_spending_today, plan.step_up_pct]
    if not all(np.isfinite(values)):
        problems.append("All amounts and rates must be finite numbers.")
    if plan.expected_return_pct <= -100 or plan.inflation_pct <= -100:
        problems.append("Expected return and inflation must be above -100%.")
    if plan.current_age < 0:
        problems.append("Current age cannot be negative.")
    if plan.retirement_age < plan.current_age:
        problems.append("Retirement age must be at or after your current age.")
    if plan.life_expectancy < plan.retirement_age:
        problems.append("Life expectancy must be at or after your retirement age.")
    if plan.current_savings < 0 or plan.monthly_contribution < 0:
        problems.append("Savings and contributions cannot be negative.")
    if plan.monthly_spending_today < 0:
        problems.append("Retirement spending cannot be negative.")
    if plan.contribution_type not in (FIXED, STEP_UP):
        problems.append(f"Unknown contribution type: {plan.contribution_type!r}.")
    if plan.strategy not in (NORMAL, BUCKET):
        problems.append(f"Unknown withdrawal strategy: {plan.strategy!r}.")
    return problems


def simulate(plan: PlanInput) -> List[ProjectionPoint]:
    """
    Year-by-year balances from current age to life expectancy (inclusive).

    Each point holds the balance at the *start* of that age; the year is then
    run as 12 monthly steps:
    - saving: add the contribution, then compound (bucket: growth sleeve only)
    - retired, normal: withdraw 1/12 of annual spending, then compound
    - retired, bucket: withdraw from the safe sleeve first and the growth sleeve
      for any remainder; the safe sleeve earns inflation, the growth sleeve the return
    Spending inflates and step-up contributions grow once per year, after the 12 months.
    """
    r_m = monthly_rate(plan.expected_return_pct)
    i_m = monthly_rate(plan.inflation_pct)
    inflation = plan.inflation_pct / 100.0
    step_up = 1 + plan.step_up_pct / 100.0
    bucket = plan.is_bucket
    block = plan.bucket_years

    balance = plan.current_savings   # normal strategy
    growth = plan.current_savings    # bucket strategy sleeves
    safe = 0.0
    annual_spending = plan.monthly_spending_today * 12
    contribution = plan.monthly_contribution

    points = []
    for age in range(plan.current_age, plan.life_expectancy + 1):
        retired = age >= plan.retirement_age

        # Refill the safe sleeve at the start of every bucket
        if bucket and retired and (age - plan.retirement_age) % block == 0:
            # Clamped at zero: a growth sleeve already below zero moves nothing
            transfer = max(0.0, min(growth, annual_spending * block))
            growth -= transfer
            safe += transfer

        expense = annual_spending if retired else 0.0
        if bucket:
            points.append(ProjectionPoint(age, growth + safe, growth, safe, expense, retired))
        else:
            points.append(ProjectionPoint(age, balance, balance, 0.0, expense, retired))

        for _ in range(12):
            if not retired:
                if bucket:
                    growth = (growth + contribution) * (1 + r_m)
                else:
                    balance = (balance + contribution) * (1 + r_m)
            elif bucket:
                withdrawal = annual_spending / 12.0
                if safe >= withdrawal:
                    safe -= withdrawal
                else:
                    growth -= withdrawal - safe
                    safe = 0.0
                growth *= 1 + r_m
                safe *= 1 + i_m
            else:
                balance = (balance - annual_spending / 12.0) * (1 + r_m)

        annual_spending *= 1 + inflation
        if plan.contribution_type == STEP_UP:
            contribution *= step_up

    logger.debug("Simulated %d years (%s strategy)", len(points), plan.strategy)
    return points


def balance_at(points: List[ProjectionPoint], age: int) -> float:
    for p in points:
        if p.age == age:
            return p.total_balance
    return 0.0


def final_balance(points: List[ProjectionPoint]) -> float:
    """What is left after paying the last year's spending (raw, may be negative)."""
    if not points:
        return 0.0
    last = points[-1]
    return last.total_balance - last.annual_expense


def peak_balance(points: List[ProjectionPoint]) -> float:
    if not points:
        return 0.0
    return max(max(p.total_balance, 0.0) for p in points)


def years_funded(points: List[ProjectionPoint], plan: PlanInput) -> int:
    """
    Retirement years paid for. A plan that ends with money left is fully funded;
    otherwise count up to the first retired age whose balance has hit zero.
    If no such age exists the money ran out during the final year.
    """
    if not points:
        return 0
    span = max(0, plan.life_expectancy - plan.retirement_age)
    if final_balance(points) > 0:
        return span
    for p in points:
        if p.is_retired and p.total_balance <= 0:
            return max(0, p.age - plan.retirement_age)
    return span


def projection_frame(points: List[ProjectionPoint], plan: PlanInput,
                     today: Optional[date] = None) -> pd.DataFrame:
    """Points as a table for charts and export, with the calendar year of each age."""
    today = today or date.today()
    df = pd.DataFrame([asdict(p) for p in points],
                      columns=["age", "total_balance", "growth_balance", "safe_balance",
                               "annual_expense", "is_retired"])
    df.insert(1, "year", [(today + relativedelta(years=int(a) - plan.current_age)).year
                          for a in df["age"]])
    df["display_balance"] = df["total_balance"].clip(lower=0.0)
    return df
