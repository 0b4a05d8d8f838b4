import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

APP_NAME = "RetireWise: Retirement Planner"

# Plan defaults (nominal; percentages are per year)
DEFAULTS = {
    "current_age": 30,
    "retirement_age": 60,
    "life_expectancy": 90,

    # Savings
    "current_savings": 50_000,
    "monthly_contribution": 1_000,
    "contribution_type": "fixed",     # "fixed" or "step-up"
    "step_up_pct": 5.0,

    # Market
    "expected_return_pct": 9.0,
    "inflation_pct": 5.0,

    # Retirement
    "monthly_spending_today": 5_000,
    "strategy": "bucket",             # "normal" or "bucket"
    "bucket_size_years": 5,
}

# Form bounds
AGE_MIN, AGE_MAX = 18, 100
LIFE_EXPECTANCY_MAX = 120
BUCKET_SIZE_MAX = 20


@dataclass(frozen=True)
class Country:
    name: str
    code: str
    currency_symbol: str
    currency_code: str


COUNTRIES = [
    Country("USA", "US", "$", "USD"),
    Country("India", "IN", "₹", "INR"),
    Country("Australia", "AU", "$", "AUD"),
    Country("Canada", "CA", "$", "CAD"),
]


def country_by_code(code: str) -> Country:
    for c in COUNTRIES:
        if c.code == code:
            return c
    return COUNTRIES[0]


# AI advisor
ADVICE_TIMEOUT_S = 30          # per provider request
ADVICE_SERVER_TIMEOUT_S = 300  # whole relay request
ADVICE_RETRIES = 1
GEMINI_MODEL = "gemini-3-flash-preview"
GROK_MODEL = "grok-2-1212"

LOG_LEVEL = os.environ.get("RETIREWISE_LOG_LEVEL", "INFO")


def _advice_timeout() -> float:
    raw = os.environ.get("RETIREWISE_ADVICE_TIMEOUT")
    if raw is None:
        return float(ADVICE_TIMEOUT_S)
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring RETIREWISE_ADVICE_TIMEOUT=%r; using %ss", raw, ADVICE_TIMEOUT_S)
        return float(ADVICE_TIMEOUT_S)


def ai_settings() -> dict:
    """Provider keys and models, read from the environment on every call."""
    return {
        "gemini_api_key": os.environ.get("GEMINI_API_KEY", "").strip(),
        "gemini_model": os.environ.get("RETIREWISE_GEMINI_MODEL", GEMINI_MODEL),
        "xai_api_key": os.environ.get("XAI_API_KEY", "").strip(),
        "grok_model": os.environ.get("RETIREWISE_GROK_MODEL", GROK_MODEL),
        "timeout": _advice_timeout(),
    }
