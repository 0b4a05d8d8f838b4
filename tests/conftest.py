from dataclasses import replace

import pytest

from simulation import PlanInput


@pytest.fixture
def scenario_a():
    return PlanInput(
        current_age=30,
        retirement_age=60,
        life_expectancy=90,
        current_savings=50_000,
        monthly_contribution=1_000,
        expected_return_pct=9.0,
        inflation_pct=5.0,
        monthly_spending_today=5_000,
        contribution_type="fixed",
        step_up_pct=5.0,
        strategy="bucket",
        bucket_size_years=5,
    )


@pytest.fixture
def normal_plan(scenario_a):
    return replace(scenario_a, strategy="normal")
