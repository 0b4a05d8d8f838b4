from dataclasses import replace
from typing import Dict, List, Tuple

from shortfall import PlanSummary, assess
from simulation import PlanInput


def clone_plan(plan: PlanInput, **overrides) -> PlanInput:
    return replace(plan, **overrides)


def compare(plan: PlanInput, variants: List[Tuple[str, dict]]) -> Dict[str, PlanSummary]:
    """
    variants: list of (name, overrides-dict)
    returns: dict name -> summary, with the unchanged plan under "Current plan"
    """
    res = {"Current plan": assess(plan)}
    for name, edits in variants:
        res[name] = assess(clone_plan(plan, **edits))
    return res


def quick_what_ifs(plan: PlanInput, extra_saving: float, retire_later_years: int,
                   cut_spending_pct: float) -> Dict[str, PlanSummary]:
    later = plan.retirement_age + retire_later_years
    return compare(plan, [
        ("Save more", {"monthly_contribution": plan.monthly_contribution + extra_saving}),
        ("Retire later", {"retirement_age": later,
                          "life_expectancy": max(plan.life_expectancy, later)}),
        ("Spend less", {"monthly_spending_today":
                        plan.monthly_spending_today * (1 - cut_spending_pct / 100.0)}),
    ])
