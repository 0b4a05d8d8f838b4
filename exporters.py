# exporters.py
import json
from dataclasses import asdict

import numpy as np
import pandas as pd

from shortfall import PlanSummary
from simulation import PlanInput


def export_projection(frame: pd.DataFrame) -> tuple[str, bytes]:
    cols = ["age", "year", "total_balance", "growth_balance", "safe_balance",
            "annual_expense", "is_retired"]
    return "projection.csv", frame[cols].to_csv(index=False).encode()


def _json_default(o):
    # numpy scalars sneak in from DataFrame lookups
    if isinstance(o, np.ndarray):
        return o.tolist()
    if isinstance(o, (np.floating, np.integer, np.bool_)):
        return o.item()
    raise TypeError(f"Object of type {o.__class__.__name__} is not JSON serializable")


def export_plan(plan: PlanInput, summary: PlanSummary) -> tuple[str, bytes]:
    """The plan inputs together with the metrics computed from them."""
    blob = json.dumps({"plan": asdict(plan), "summary": asdict(summary)},
                      indent=2, default=_json_default)
    return "plan.json", blob.encode()
