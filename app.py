# app.py
import logging
from dataclasses import asdict

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from advice import AdviceError, build_prompt, make_provider, request_advice
from calculators import fixed_deposit, recurring_deposit, loan_emi, sip, goal_plan
from config import (APP_NAME, DEFAULTS, COUNTRIES, AGE_MIN, AGE_MAX, LIFE_EXPECTANCY_MAX,
                    BUCKET_SIZE_MAX, LOG_LEVEL, country_by_code)
from costs import DEFAULT_EXPENSES, basket_totals, project_expenses, basket_for_year
from exporters import export_projection, export_plan
from scenarios import quick_what_ifs
from shortfall import assess
from simulation import PlanInput, simulate, check_plan, projection_frame, BUCKET, NORMAL, FIXED, STEP_UP
from ui import inject_css, header, helptext, money, kpi_card, status_badge

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

# ------------- Page setup -------------
st.set_page_config(page_title=APP_NAME, page_icon="📈", layout="wide")
inject_css()
header(APP_NAME, "Plan your future: see how your savings grow and how long they last.")

st.session_state.setdefault("monthly_spending_today", float(DEFAULTS["monthly_spending_today"]))
st.session_state.setdefault("advice", None)

with st.expander("How this app works (30 seconds)"):
    st.write("""
- We grow your savings **month by month** at your expected return, adding your monthly contribution until retirement.
- From retirement we withdraw your spending, which rises every year with **inflation**.
- **Normal** strategy: everything stays invested and withdrawals come straight out of it.
- **Bucket** strategy: at the start of every bucket we move the next few years of spending into a safe sleeve
  that only keeps pace with inflation; the rest stays invested for growth.
- The **required corpus** is what you need on retirement day to last until your life expectancy.
    """)

with st.expander("Normal vs Bucket: which withdrawal strategy?"):
    g1, g2 = st.columns(2)
    with g1:
        st.markdown("""
**Normal strategy**

Your whole pot stays invested in one portfolio and every month's spending is sold from it.

- **Pros:** simple to run; all of your money stays in the market, so long-run growth can be higher.
- **Cons:** *sequence-of-returns risk*. A crash early in retirement forces you to sell at a loss to pay
  your bills, and those losses never get the chance to recover.
        """)
    with g2:
        st.markdown("""
**Bucket strategy**

A few years of spending sit in a safe bucket (deposits, short-term debt); the rest stays in growth assets.
You spend from the safe bucket first and refill it at the start of each block.

- **Pros:** peace of mind. A market fall does not touch the next few years of spending, so you are never
  forced to sell growth assets at the bottom.
- **Cons:** *cash drag*. Money in the safe bucket earns less, so the whole pot may grow more slowly.
        """)
    st.markdown("""
**Which one?** Normal suits a large pot or a high tolerance for swings, since it leans on the market's
long-term upward trend. Bucket suits anyone who would rather give up a little growth for stability.

*Here the safe bucket is assumed to earn exactly inflation and the growth bucket your expected return.
Compounding rewards starting early: every year of saving you add before retirement grows the longest.*
    """)

# ------------- Sidebar (inputs) -------------
st.sidebar.header("Where you live")
country = country_by_code(st.sidebar.selectbox(
    "Country", [c.code for c in COUNTRIES],
    format_func=lambda code: f"{country_by_code(code).name} ({country_by_code(code).currency_code})",
))
cur = country.currency_symbol

st.sidebar.header("Your timeline")
current_age = st.sidebar.number_input("Current age", min_value=AGE_MIN, max_value=AGE_MAX,
                                      value=DEFAULTS["current_age"])
retirement_age = st.sidebar.number_input("Retirement age", min_value=int(current_age), max_value=AGE_MAX,
                                         value=max(DEFAULTS["retirement_age"], int(current_age)))
life_expectancy = st.sidebar.number_input("Life expectancy", min_value=int(retirement_age),
                                          max_value=LIFE_EXPECTANCY_MAX,
                                          value=max(DEFAULTS["life_expectancy"], int(retirement_age)))

st.sidebar.header("Savings")
current_savings = st.sidebar.number_input(f"Current savings ({cur})", min_value=0.0,
                                          value=float(DEFAULTS["current_savings"]), step=1000.0)
monthly_contribution = st.sidebar.number_input(f"Monthly savings till retirement ({cur})", min_value=0.0,
                                               value=float(DEFAULTS["monthly_contribution"]), step=100.0)
contribution_type = st.sidebar.radio(
    "Contribution type", [FIXED, STEP_UP], horizontal=True,
    index=[FIXED, STEP_UP].index(DEFAULTS["contribution_type"]),
    format_func=lambda v: "Fixed" if v == FIXED else "Step-up",
)
step_up_pct = st.sidebar.number_input(
    "Annual step-up (%)", min_value=0.0, max_value=50.0, value=DEFAULTS["step_up_pct"], step=0.1,
    help="How much your monthly saving rises every year. Also used for the step-up top-up suggestion.",
)

st.sidebar.header("Market")
expected_return_pct = st.sidebar.number_input("Expected return (%/yr)", min_value=-99.9,
                                              value=DEFAULTS["expected_return_pct"], step=0.1)
inflation_pct = st.sidebar.number_input("Inflation (%/yr)", min_value=-99.9, value=DEFAULTS["inflation_pct"],
                                        step=0.1)

st.sidebar.header("Retirement")
monthly_spending_today = st.sidebar.number_input(
    f"Monthly spending, today's money ({cur})", min_value=0.0, step=100.0, key="monthly_spending_today",
)
strategy = st.sidebar.radio(
    "Withdrawal strategy", [NORMAL, BUCKET], horizontal=True,
    index=[NORMAL, BUCKET].index(DEFAULTS["strategy"]),
    format_func=lambda v: "Normal" if v == NORMAL else "Bucket",
)
bucket_size_years = DEFAULTS["bucket_size_years"]
if strategy == BUCKET:
    bucket_size_years = st.sidebar.number_input("Bucket size (years)", min_value=1, max_value=BUCKET_SIZE_MAX,
                                                value=DEFAULTS["bucket_size_years"])

plan = PlanInput(
    current_age=int(current_age),
    retirement_age=int(retirement_age),
    life_expectancy=int(life_expectancy),
    current_savings=current_savings,
    monthly_contribution=monthly_contribution,
    expected_return_pct=expected_return_pct,
    inflation_pct=inflation_pct,
    monthly_spending_today=monthly_spending_today,
    contribution_type=contribution_type,
    step_up_pct=step_up_pct,
    strategy=strategy,
    bucket_size_years=int(bucket_size_years),
)

problems = check_plan(plan)
if problems:
    for p in problems:
        st.error(p)
    st.stop()


@st.cache_data(show_spinner=False)
def run_cached(plan_dict):
    plan_obj = PlanInput(**plan_dict)
    points = simulate(plan_obj)
    return points, assess(plan_obj, points)


points, summary = run_cached(asdict(plan))
frame = projection_frame(points, plan)

# ------------- Summary -------------
st.markdown("### 1) Projection summary")
status_badge(summary.on_track)

c1, c2, c3 = st.columns(3)
kpi_card(c1, f"Required corpus (at age {plan.retirement_age})", money(cur, summary.required_corpus),
         f"To sustain spending until age {plan.life_expectancy}")
kpi_card(c2, "Projected balance at retirement", money(cur, summary.balance_at_retirement))
kpi_card(c3, "Projected shortfall", money(cur, summary.shortfall),
         "Gap to be filled by additional savings", tone="bad" if summary.shortfall > 0 else "good")

if summary.shortfall > 0:
    helptext("Ways to bridge the gap, starting this month:")
    d1, d2 = st.columns(2)
    kpi_card(d1, "1. Fixed monthly", "+" + money(cur, summary.additional_savings.fixed_monthly), tone="good")
    kpi_card(d2, f"2. Step-up (+{plan.step_up_pct}%/yr)",
             "+" + money(cur, summary.additional_savings.step_up_monthly), tone="good")

e1, e2, e3 = st.columns(3)
kpi_card(e1, "Final balance", money(cur, summary.final_balance), tone="" if summary.on_track else "bad")
kpi_card(e2, "Years funded", f"{summary.years_funded} years")
kpi_card(e3, "Peak balance", money(cur, summary.peak_balance))

# ------------- Chart / table -------------
st.markdown("### 2) Wealth projection")
helptext(f"Nominal projection in {country.currency_code} including {plan.inflation_pct}% annual inflation.")
view = st.radio("View", ["Chart", "Table"], horizontal=True, label_visibility="collapsed")

if view == "Chart":
    figW = go.Figure()
    figW.add_trace(go.Scatter(x=frame["age"], y=frame["display_balance"], mode="lines", name="Net worth",
                              fill="tozeroy", customdata=frame["year"],
                              hovertemplate="Age %{x} (%{customdata})<br>%{y:,.0f}<extra></extra>"))
    if plan.is_bucket:
        figW.add_trace(go.Scatter(x=frame["age"], y=frame["growth_balance"].clip(lower=0), mode="lines",
                                  name="Growth sleeve", line=dict(dash="dot")))
        figW.add_trace(go.Scatter(x=frame["age"], y=frame["safe_balance"], mode="lines",
                                  name="Safe sleeve", line=dict(dash="dot")))
    figW.add_trace(go.Scatter(x=frame["age"], y=frame["annual_expense"].where(frame["is_retired"]),
                              mode="lines", name="Annual expenses", line=dict(color="#f43f5e")))
    figW.add_vline(x=plan.retirement_age, line_dash="dash", line_color="green")
    figW.update_layout(
        xaxis_title="Age", yaxis_title=country.currency_code,
        hovermode="x unified", margin=dict(l=30, r=20, t=30, b=30)
    )
    st.plotly_chart(figW, use_container_width=True)
else:
    cols = ["age", "year", "total_balance"]
    if plan.is_bucket:
        cols += ["growth_balance", "safe_balance"]
    cols += ["annual_expense"]
    table = frame[cols].rename(columns={
        "age": "Age", "year": "Year", "total_balance": "Net worth", "growth_balance": "Growth",
        "safe_balance": "Safe (FD)", "annual_expense": "Annual expenses",
    })
    st.dataframe(table.style.format({c: "{:,.0f}" for c in table.columns if c not in ("Age", "Year")}),
                 hide_index=True, use_container_width=True)

# ------------- AI advisor -------------
st.markdown("### 3) AI advisor")
helptext("Get a personalised read of your plan. Your numbers are sent to the selected AI provider.")
a1, a2 = st.columns([1, 3])
provider_name = a1.selectbox("Provider", ["gemini", "grok"], format_func=str.capitalize)
if a2.button("Generate insights"):
    with st.spinner("Consulting AI advisor..."):
        try:
            generate = make_provider(provider_name)
            st.session_state["advice"] = request_advice(generate, build_prompt(plan, country, summary))
        except AdviceError as exc:
            logger.error("Advice generation failed: %s", exc)
            st.session_state["advice"] = None
            st.error(f"Error: {exc}")
if st.session_state["advice"]:
    with st.container(border=True):
        st.markdown(st.session_state["advice"])

# ------------- Quick what-ifs -------------
st.markdown("### 4) Quick what-ifs")
w1, w2, w3 = st.columns(3)
more_saving = w1.slider(f"Add to monthly saving ({cur})", 0, 5000, 500, 50)
retire_later = w2.slider("Retire later (years)", 0, 10, 2, 1)
cut_spending = w3.slider("Cut retirement spending (%)", 0, 50, 10, 1)

if st.button("Run what-ifs"):
    results = quick_what_ifs(plan, more_saving, retire_later, cut_spending)
    st.dataframe(pd.DataFrame([
        {"Scenario": name, "Required corpus": s.required_corpus, "At retirement": s.balance_at_retirement,
         "Shortfall": s.shortfall, "Years funded": s.years_funded, "On track": s.on_track}
        for name, s in results.items()
    ]).style.format({"Required corpus": "{:,.0f}", "At retirement": "{:,.0f}", "Shortfall": "{:,.0f}"}),
        hide_index=True, use_container_width=True)

# ------------- Calculators -------------
st.markdown("### 5) Calculators")
tab_fd, tab_sip, tab_emi, tab_goal, tab_exp = st.tabs(["FD/RD", "SIP", "Loan EMI", "Goal", "Expenses"])

with tab_fd:
    kind = st.radio("Deposit", ["Fixed deposit", "Recurring deposit"], horizontal=True)
    f1, f2, f3 = st.columns(3)
    amount = f1.number_input("Investment amount" if kind == "Fixed deposit" else "Monthly deposit",
                             min_value=0.0, value=100_000.0 if kind == "Fixed deposit" else 5_000.0, step=1000.0)
    rate = f2.number_input("Interest rate (%/yr)", value=7.0, step=0.1, key="fd_rate")
    tenure = f3.number_input("Tenure (years)", min_value=0.0, value=5.0, step=1.0, key="fd_tenure")
    res = fixed_deposit(amount, rate, tenure) if kind == "Fixed deposit" else recurring_deposit(amount, rate, tenure)
    r1, r2, r3 = st.columns(3)
    kpi_card(r1, "Maturity value", money(cur, res["maturity"]))
    kpi_card(r2, "Total invested", money(cur, res["total_invested"]))
    kpi_card(r3, "Interest earned", "+" + money(cur, res["interest"]), tone="good")

with tab_sip:
    s1, s2, s3, s4 = st.columns(4)
    sip_amount = s1.number_input("Monthly investment", min_value=0.0, value=10_000.0, step=500.0)
    sip_rate = s2.number_input("Expected return (%/yr)", value=12.0, step=0.1, key="sip_rate")
    sip_years = s3.number_input("Tenure (years)", min_value=0.0, value=10.0, step=1.0, key="sip_years")
    sip_step = s4.number_input("Annual step-up (%)", min_value=0.0, value=0.0, step=1.0, key="sip_step")
    res = sip(sip_amount, sip_rate, sip_years, sip_step)
    r1, r2, r3 = st.columns(3)
    kpi_card(r1, "Maturity value", money(cur, res["maturity"]))
    kpi_card(r2, "Total invested", money(cur, res["total_invested"]))
    kpi_card(r3, "Wealth gained", "+" + money(cur, res["wealth_gained"]), tone="good")

with tab_emi:
    l1, l2, l3 = st.columns(3)
    principal = l1.number_input("Loan amount", min_value=0.0, value=1_000_000.0, step=10_000.0)
    loan_rate = l2.number_input("Interest rate (%/yr)", value=8.5, step=0.1, key="emi_rate")
    loan_years = l3.number_input("Tenure (years)", min_value=0.0, value=20.0, step=1.0, key="emi_years")
    res = loan_emi(principal, loan_rate, loan_years)
    r1, r2, r3 = st.columns(3)
    kpi_card(r1, "Monthly EMI", money(cur, res["emi"]))
    kpi_card(r2, "Total interest", money(cur, res["total_interest"]), f"{res['interest_ratio']:.1f}% of payments")
    kpi_card(r3, "Total payment", money(cur, res["total_payment"]))

with tab_goal:
    goal_name = st.text_input("Goal", value="Child's Graduation")
    g1, g2, g3, g4 = st.columns(4)
    goal_cost = g1.number_input("Cost today", min_value=0.0, value=500_000.0, step=10_000.0)
    years_to_goal = g2.number_input("Years to goal", min_value=0, value=15)
    goal_savings = g3.number_input("Saved so far", min_value=0.0, value=20_000.0, step=1000.0)
    goal_monthly = g4.number_input("Monthly saving", min_value=0.0, value=1_000.0, step=100.0)
    g5, g6 = st.columns(2)
    goal_return = g5.number_input("Expected return (%/yr)", value=10.0, step=0.1, key="goal_return")
    goal_inflation = g6.number_input("Inflation (%/yr)", value=7.0, step=0.1, key="goal_inflation")
    res = goal_plan(goal_cost, int(years_to_goal), plan.current_age, plan.retirement_age,
                    goal_savings, goal_monthly, goal_return, goal_inflation)
    r1, r2, r3 = st.columns(3)
    kpi_card(r1, f"{goal_name} at age {res['goal_age']}", money(cur, res["future_cost"]), "Inflation-adjusted cost")
    kpi_card(r2, "Projected corpus", money(cur, res["projected_corpus"]),
             tone="good" if res["achievable"] else "bad")
    kpi_card(r3, "Shortfall", money(cur, res["shortfall"]))
    if res["shortfall"] > 0:
        st.info(f"Save an extra {money(cur, res['additional_monthly'])}/month "
                f"or invest {money(cur, res['additional_lump_sum'])} today to reach this goal.")

with tab_exp:
    helptext("Your monthly spending today, by category. Use the total as your retirement spending.")
    edited = st.data_editor(
        pd.DataFrame({"Category": list(DEFAULT_EXPENSES), "Monthly": list(DEFAULT_EXPENSES.values())}),
        num_rows="dynamic", hide_index=True, use_container_width=True, key="expenses",
    )
    expenses = {row["Category"]: float(row["Monthly"] or 0)
                for _, row in edited.iterrows() if row["Category"]}
    totals = basket_totals(expenses)
    at_retirement = basket_for_year(project_expenses(expenses, plan.inflation_pct,
                                                     plan.retirement_age - plan.current_age),
                                    plan.retirement_age - plan.current_age)
    x1, x2, x3 = st.columns(3)
    kpi_card(x1, "Total monthly", money(cur, totals["monthly"]))
    kpi_card(x2, "Total annual", money(cur, totals["annual"]))
    kpi_card(x3, f"Monthly at age {plan.retirement_age} (nominal)", money(cur, at_retirement["monthly_nominal"]))

    def _use_basket(amount):
        st.session_state["monthly_spending_today"] = amount

    st.button("Use as retirement spending", on_click=_use_basket, args=(totals["monthly"],))

# ------------- Export -------------
st.markdown("### 6) Export")
name_csv, data_csv = export_projection(frame)
st.download_button("⬇️ Download projection (CSV)", data_csv, file_name=name_csv, mime="text/csv")
name_plan, data_plan = export_plan(plan, summary)
st.download_button("⬇️ Download your plan (JSON)", data_plan, file_name=name_plan, mime="application/json")

st.markdown("---")
st.caption("Estimates provided for informational purposes only. Actual results vary with market "
           "performance and taxes. Consult a professional.")
