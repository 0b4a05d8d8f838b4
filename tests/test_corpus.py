from dataclasses import replace

import pytest

from corpus import required_corpus, bucket_blocks, initial_retirement_spending
from rates import real_rate


def test_scenario_a_needs_a_corpus(scenario_a):
    assert required_corpus(scenario_a) > 0


def test_initial_spending_is_inflated_to_retirement(scenario_a):
    assert initial_retirement_spending(scenario_a) == pytest.approx(5_000 * 12 * 1.05 ** 30)


def test_no_retirement_years_needs_nothing(scenario_a, normal_plan):
    assert required_corpus(replace(scenario_a, life_expectancy=60)) == 0.0
    assert required_corpus(replace(normal_plan, life_expectancy=60)) == 0.0


def test_zero_spending_needs_nothing(normal_plan):
    assert required_corpus(replace(normal_plan, monthly_spending_today=0)) == 0.0


def test_normal_corpus_is_present_value_of_annuity_due(normal_plan):
    spending = initial_retirement_spending(normal_plan)
    real = real_rate(9.0, 5.0)
    expected = sum(spending / (1 + real) ** k for k in range(30))
    assert required_corpus(normal_plan) == pytest.approx(expected, rel=1e-12)


def test_return_equal_to_inflation_takes_linear_branch(normal_plan):
    plan = replace(normal_plan, expected_return_pct=5.0, inflation_pct=5.0)
    assert required_corpus(plan) == pytest.approx(5_000 * 12 * 1.05 ** 30 * 30)


def test_near_equal_rates_also_take_linear_branch(normal_plan):
    # real rate of ~0.5e-4, below the threshold
    plan = replace(normal_plan, expected_return_pct=5.005, inflation_pct=5.0)
    spending = initial_retirement_spending(plan)
    assert required_corpus(plan) == pytest.approx(spending * 30)


def test_retiring_today_uses_todays_spending(normal_plan):
    plan = replace(normal_plan, current_age=60, expected_return_pct=5.0, inflation_pct=5.0)
    assert required_corpus(plan) == pytest.approx(60_000 * 30)


def test_bucket_of_one_year_matches_normal(scenario_a, normal_plan):
    one_year = replace(scenario_a, bucket_size_years=1)
    assert required_corpus(one_year) == pytest.approx(required_corpus(normal_plan), rel=1e-12)


def test_bigger_buckets_need_more_when_real_rate_is_positive(scenario_a, normal_plan):
    assert required_corpus(scenario_a) > required_corpus(normal_plan)


def test_bucket_blocks_last_one_is_short(scenario_a):
    assert bucket_blocks(replace(scenario_a, bucket_size_years=7)) == [
        (0, 7), (7, 7), (14, 7), (21, 7), (28, 2)]


def test_bucket_larger_than_retirement_is_one_block(scenario_a):
    plan = replace(scenario_a, bucket_size_years=50)
    assert bucket_blocks(plan) == [(0, 30)]
    assert required_corpus(plan) == pytest.approx(initial_retirement_spending(plan) * 30)


def test_bucket_corpus_discounts_each_block(scenario_a):
    spending = initial_retirement_spending(scenario_a)
    real = real_rate(9.0, 5.0)
    expected = sum(spending * 5 / (1 + real) ** start for start in range(0, 30, 5))
    assert required_corpus(scenario_a) == pytest.approx(expected)


def test_bucket_size_zero_is_clamped(scenario_a):
    assert bucket_blocks(replace(scenario_a, bucket_size_years=0)) == [(k, 1) for k in range(30)]
    assert required_corpus(replace(scenario_a, bucket_size_years=0)) == pytest.approx(
        required_corpus(replace(scenario_a, bucket_size_years=1)))
