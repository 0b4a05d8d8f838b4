"""
Everyday calculators shown next to the retirement planner:
fixed and recurring deposits, loan EMI, SIP (with optional step-up) and goal planning.

Unlike the projection engine these follow the conventions of the products they model:
deposits compound quarterly, and loan and SIP rates are quoted annual rates divided by 12.
"""
from typing import Optional

import numpy as np

from rates import annuity_fv_factor, RATE_EPS

QUARTERS = 4


def fixed_deposit(amount: float, rate_pct: float, years: float) -> dict:
    maturity = amount * (1 + rate_pct / 100.0 / QUARTERS) ** (QUARTERS * years)
    return {"maturity": maturity, "interest": maturity - amount, "total_invested": amount}


def recurring_deposit(monthly: float, rate_pct: float, years: float) -> dict:
    """Each monthly deposit earns quarterly-compounded interest for the months it is held."""
    months = int(round(years * 12))
    held = np.arange(months, 0, -1)  # first deposit is held for the full term
    maturity = float(np.sum(monthly * (1 + rate_pct / 100.0 / QUARTERS) ** (QUARTERS * held / 12.0)))
    invested = monthly * months
    return {"maturity": maturity, "interest": maturity - invested, "total_invested": invested}


def loan_emi(principal: float, rate_pct: float, years: float) -> dict:
    months = int(round(years * 12))
    if months <= 0:
        return {"emi": 0.0, "total_payment": 0.0, "total_interest": 0.0, "interest_ratio": 0.0}
    r = rate_pct / 12.0 / 100.0
    if abs(r) < RATE_EPS:
        emi = principal / months
    else:
        growth = (1 + r) ** months
        emi = principal * r * growth / (growth - 1)
    total = emi * months
    interest = total - principal
    return {
        "emi": emi,
        "total_payment": total,
        "total_interest": interest,
        "interest_ratio": 100.0 * interest / total if total else 0.0,
    }


def sip(monthly: float, rate_pct: float, years: float, step_up_pct: float = 0.0) -> dict:
    """
    Systematic investment plan: an instalment at the start of every month, raised by
    step_up_pct every 12 months. Each instalment grows until the end of the term.
    """
    months = int(round(years * 12))
    r = rate_pct / 100.0 / 12.0
    m = np.arange(1, months + 1)
    amounts = monthly * (1 + step_up_pct / 100.0) ** ((m - 1) // 12)
    maturity = float(np.sum(amounts * (1 + r) ** (months - m + 1)))
    invested = float(np.sum(amounts))
    return {"maturity": maturity, "total_invested": invested, "wealth_gained": maturity - invested}


def goal_plan(goal_cost_today: float, years_to_goal: int, current_age: int,
              retirement_age: int, current_savings: float, monthly_contribution: float,
              return_pct: float, inflation_pct: float) -> Optional[dict]:
    """
    Can savings plus monthly contributions pay for a future goal (education, a house...)?

    Contributions stop at retirement or at the goal, whichever comes first; money saved
    by retirement keeps growing until the goal. Returns None for a goal in the past.
    """
    if years_to_goal < 0:
        return None
    annual = return_pct / 100.0
    goal_age = current_age + years_to_goal

    future_cost = goal_cost_today * (1 + inflation_pct / 100.0) ** years_to_goal
    fv_savings = current_savings * (1 + annual) ** years_to_goal

    months = max(0, (min(goal_age, retirement_age) - current_age) * 12)
    r_m = annual / 12.0
    gap_years = max(0, goal_age - retirement_age)
    # Contributions at the start of each month
    due_factor = annuity_fv_factor(r_m, months) * (1 + r_m)

    fv_contributions = 0.0
    if months > 0:
        fv_contributions = monthly_contribution * due_factor * (1 + annual) ** gap_years

    corpus = fv_savings + fv_contributions
    gap = max(0.0, future_cost - corpus)

    extra_monthly = 0.0
    extra_lump_sum = 0.0
    if gap > 0:
        if months > 0:
            extra_monthly = gap / (1 + annual) ** gap_years / due_factor
        extra_lump_sum = gap / (1 + annual) ** years_to_goal

    return {
        "goal_age": goal_age,
        "future_cost": future_cost,
        "projected_corpus": corpus,
        "shortfall": gap,
        "achievable": corpus >= future_cost,
        "additional_monthly": extra_monthly,
        "additional_lump_sum": extra_lump_sum,
    }
