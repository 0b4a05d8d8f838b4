import numpy as np
import pandas as pd

# Monthly spending today, by category
DEFAULT_EXPENSES = {
    "Rent/Mortgage": 2000,
    "Groceries": 500,
    "Utilities": 200,
    "Transport": 300,
    "Entertainment": 200,
    "Insurance": 150,
    "Children Expenses": 1000,
    "Maid": 500,
    "Travel": 200,
    "Misc": 100,
}


def basket_totals(expenses: dict) -> dict:
    monthly = float(sum(expenses.values()))
    return {"monthly": monthly, "annual": monthly * 12}


def project_expenses(expenses: dict, inflation_pct: float, years: int) -> pd.DataFrame:
    """
    Returns a DataFrame with the nominal cost per category for each future year (0..years),
    every category inflating at the headline rate.
    """
    idx = np.arange(years + 1)
    multiplier = (1 + inflation_pct / 100.0) ** idx
    rows = []
    for cat, monthly_now in expenses.items():
        rows.append(pd.DataFrame({
            "year": idx,
            "category": cat,
            "monthly_nominal": monthly_now * multiplier,
        }))
    if not rows:
        return pd.DataFrame(columns=["year", "category", "monthly_nominal", "annual_nominal"])
    out = pd.concat(rows, ignore_index=True)
    out["annual_nominal"] = out["monthly_nominal"] * 12
    return out


def basket_for_year(df: pd.DataFrame, year: int) -> dict:
    view = df[df["year"] == year]
    return {
        "monthly_nominal": float(view["monthly_nominal"].sum()),
        "annual_nominal": float(view["annual_nominal"].sum()),
    }
