import math
from dataclasses import replace
from datetime import date

import pytest

from rates import annuity_fv_factor, monthly_rate
from simulation import (PlanInput, simulate, balance_at, final_balance, peak_balance,
                        years_funded, projection_frame, check_plan)


def flat_plan(**overrides):
    """Zero return, zero inflation: every balance is plain arithmetic."""
    base = dict(current_age=60, retirement_age=60, life_expectancy=63, current_savings=100_000,
                monthly_contribution=0, expected_return_pct=0.0, inflation_pct=0.0,
                monthly_spending_today=1_000)
    base.update(overrides)
    return PlanInput(**base)


def test_scenario_a_shape(scenario_a):
    points = simulate(scenario_a)
    assert len(points) == 61
    assert [p.age for p in points] == list(range(30, 91))
    by_age = {p.age: p for p in points}
    assert by_age[60].is_retired
    assert not by_age[59].is_retired
    assert by_age[59].annual_expense == 0.0
    assert by_age[60].annual_expense > 0


def test_point_count_follows_horizon(normal_plan):
    plan = replace(normal_plan, current_age=45, retirement_age=50, life_expectancy=52)
    points = simulate(plan)
    assert len(points) == plan.life_expectancy - plan.current_age + 1
    ages = [p.age for p in points]
    assert all(b > a for a, b in zip(ages, ages[1:]))


def test_bucket_sleeves_add_up(scenario_a):
    for p in simulate(scenario_a):
        assert p.growth_balance + p.safe_balance == pytest.approx(p.total_balance, abs=1e-6)


def test_normal_has_no_safe_sleeve(normal_plan):
    for p in simulate(normal_plan):
        assert p.safe_balance == 0.0
        assert p.growth_balance == p.total_balance


def test_simulate_is_deterministic(scenario_a):
    assert simulate(scenario_a) == simulate(scenario_a)


def test_saving_phase_compounds_current_savings():
    plan = PlanInput(current_age=30, retirement_age=40, life_expectancy=40, current_savings=10_000,
                     monthly_contribution=0, expected_return_pct=6.0, inflation_pct=2.0,
                     monthly_spending_today=0)
    assert balance_at(simulate(plan), 40) == pytest.approx(10_000 * 1.06 ** 10, rel=1e-9)


def test_contributions_are_added_before_growth():
    plan = PlanInput(current_age=30, retirement_age=40, life_expectancy=40, current_savings=0,
                     monthly_contribution=100, expected_return_pct=6.0, inflation_pct=2.0,
                     monthly_spending_today=0)
    r_m = monthly_rate(6.0)
    expected = 100 * annuity_fv_factor(r_m, 120) * (1 + r_m)
    assert balance_at(simulate(plan), 40) == pytest.approx(expected, rel=1e-9)


def test_step_up_raises_contribution_every_year():
    plan = PlanInput(current_age=30, retirement_age=32, life_expectancy=32, current_savings=0,
                     monthly_contribution=100, expected_return_pct=0.0, inflation_pct=0.0,
                     monthly_spending_today=0, contribution_type="step-up", step_up_pct=10.0)
    points = simulate(plan)
    assert balance_at(points, 31) == pytest.approx(1_200)
    assert balance_at(points, 32) == pytest.approx(1_200 + 1_320)


def test_fixed_contribution_ignores_step_up_rate():
    plan = PlanInput(current_age=30, retirement_age=32, life_expectancy=32, current_savings=0,
                     monthly_contribution=100, expected_return_pct=0.0, inflation_pct=0.0,
                     monthly_spending_today=0, contribution_type="fixed", step_up_pct=10.0)
    assert balance_at(simulate(plan), 32) == pytest.approx(2_400)


def test_zero_spending_retirement_is_pure_compound_growth(normal_plan):
    plan = replace(normal_plan, monthly_spending_today=0)
    points = simulate(plan)
    start = balance_at(points, 60)
    for k in (1, 10, 30):
        assert balance_at(points, 60 + k) == pytest.approx(start * 1.09 ** k, rel=1e-9)


def test_normal_withdrawals_inflate_each_year():
    plan = flat_plan(current_savings=120_000, life_expectancy=62, inflation_pct=10.0)
    points = simulate(plan)
    assert points[1].annual_expense == pytest.approx(13_200)
    assert balance_at(points, 62) == pytest.approx(120_000 - 12_000 - 13_200)


def test_normal_withdraws_before_growth():
    plan = flat_plan(current_savings=12_000, life_expectancy=61, expected_return_pct=12.0)
    # Withdrawing first leaves nothing to grow in the last month
    r_m = monthly_rate(12.0)
    balance = 12_000.0
    for _ in range(12):
        balance = (balance - 1_000) * (1 + r_m)
    assert balance_at(simulate(plan), 61) == pytest.approx(balance)
    assert balance < 12_000 * (1 + r_m) ** 12 - 12_000


def test_bucket_refills_safe_sleeve_at_each_bucket_start():
    points = simulate(flat_plan(strategy="bucket", bucket_size_years=2))
    got = [(p.age, p.total_balance, p.growth_balance, p.safe_balance) for p in points]
    assert got == [
        (60, 100_000, 76_000, 24_000),
        (61, 88_000, 76_000, 12_000),
        (62, 76_000, 52_000, 24_000),
        (63, 64_000, 52_000, 12_000),
    ]


def test_bucket_safe_sleeve_earns_inflation_not_return():
    plan = flat_plan(strategy="bucket", bucket_size_years=2, life_expectancy=61, inflation_pct=12.0)
    p61 = simulate(plan)[1]
    # growth sleeve earns the 0% return, safe sleeve keeps pace with inflation
    assert p61.growth_balance == pytest.approx(76_000)
    assert p61.safe_balance > 12_000


def test_bucket_draws_growth_sleeve_when_safe_runs_dry():
    plan = flat_plan(strategy="bucket", bucket_size_years=2, current_savings=18_000, life_expectancy=62)
    points = simulate(plan)
    # 18k all moves to the safe sleeve; year 2 spends the rest and 6k more from growth
    assert points[1].safe_balance == pytest.approx(6_000)
    assert points[2].growth_balance == pytest.approx(-6_000)
    assert points[2].safe_balance == 0.0


@pytest.mark.parametrize("size", [0, -3])
def test_bucket_size_is_clamped_to_one(size):
    clamped = simulate(flat_plan(strategy="bucket", bucket_size_years=size))
    assert clamped == simulate(flat_plan(strategy="bucket", bucket_size_years=1))


def test_balances_may_go_negative():
    plan = flat_plan(current_savings=30_000, life_expectancy=70)
    points = simulate(plan)
    assert points[-1].total_balance < 0
    frame = projection_frame(points, plan)
    assert (frame["display_balance"] >= 0).all()
    assert frame["total_balance"].iloc[-1] == points[-1].total_balance


def test_years_funded_counts_to_first_empty_year():
    plan = flat_plan(current_savings=30_000, life_expectancy=70)
    points = simulate(plan)
    # 30k, 18k, 6k, -6k ...
    assert final_balance(points) < 0
    assert years_funded(points, plan) == 3


def test_years_funded_when_money_runs_out_in_final_year():
    plan = flat_plan(current_savings=30_000, life_expectancy=62)
    points = simulate(plan)
    assert final_balance(points) == pytest.approx(-6_000)
    assert years_funded(points, plan) == 2


def test_years_funded_full_span_when_on_track(normal_plan):
    plan = replace(normal_plan, monthly_spending_today=100)
    points = simulate(plan)
    assert final_balance(points) > 0
    assert years_funded(points, plan) == 30


def test_diagnostics_on_edges():
    assert final_balance([]) == 0.0
    assert peak_balance([]) == 0.0
    points = simulate(flat_plan())
    assert balance_at(points, 20) == 0.0
    assert peak_balance(points) == 100_000


def test_projection_frame_calendar_years(scenario_a):
    frame = projection_frame(simulate(scenario_a), scenario_a, today=date(2026, 10, 19))
    assert list(frame.columns[:2]) == ["age", "year"]
    assert frame["year"].iloc[0] == 2026
    assert frame["year"].iloc[-1] == 2086
    assert len(frame) == 61


def test_check_plan_accepts_sane_plan(scenario_a):
    assert check_plan(scenario_a) == []


def test_check_plan_flags_bad_ages_and_values(scenario_a):
    bad = replace(scenario_a, retirement_age=25, life_expectancy=20)
    problems = check_plan(bad)
    assert any("Retirement age" in p for p in problems)
    assert any("Life expectancy" in p for p in problems)
    assert check_plan(replace(scenario_a, inflation_pct=math.nan))
    assert check_plan(replace(scenario_a, strategy="ladder"))


@pytest.mark.parametrize("field", ["expected_return_pct", "inflation_pct"])
@pytest.mark.parametrize("pct", [-100.0, -150.0])
def test_check_plan_flags_rates_at_or_below_minus_100(scenario_a, field, pct):
    problems = check_plan(replace(scenario_a, **{field: pct}))
    assert any("above -100%" in p for p in problems)


def test_check_plan_accepts_rates_just_above_minus_100(scenario_a):
    assert check_plan(replace(scenario_a, expected_return_pct=-99.0, inflation_pct=-99.0)) == []
