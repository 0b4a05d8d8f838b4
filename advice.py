"""
AI advisor: turns a plan and its computed metrics into a prompt and asks a
text-generation provider for a markdown answer.

A provider is any callable ``generate(prompt) -> str`` that raises AdviceError
on failure, so the planner never depends on a particular vendor.
"""
import logging
from typing import Callable, Optional

import requests

from config import ADVICE_RETRIES, Country, ai_settings
from shortfall import PlanSummary
from simulation import PlanInput, STEP_UP

logger = logging.getLogger(__name__)

EMPTY_RESPONSE = "The AI returned an empty response."
SYSTEM_ROLE = "You are a professional financial advisor."


class AdviceError(Exception):
    pass


class MissingApiKeyError(AdviceError):
    pass


def _money(symbol: str, amount: float) -> str:
    return f"{symbol}{amount:,.0f}"


def build_prompt(plan: PlanInput, country: Country, summary: PlanSummary) -> str:
    cur = country.currency_symbol
    if plan.is_bucket:
        strategy = f"Bucket strategy ({plan.bucket_years}-year buckets)"
    else:
        strategy = "Normal (direct withdrawal)"
    if plan.contribution_type == STEP_UP:
        contribution = f"increases by {plan.step_up_pct}% every year"
    else:
        contribution = "fixed amount"
    extra = summary.additional_savings

    return f"""As a professional financial advisor, review this retirement plan and give concise, actionable advice.

Context:
- Country: {country.name} (currency {country.currency_code})
- Withdrawal strategy: {strategy}

Plan:
- Current age: {plan.current_age}
- Retirement age: {plan.retirement_age}
- Life expectancy: {plan.life_expectancy}
- Current savings: {_money(cur, plan.current_savings)}
- Monthly contribution: {_money(cur, plan.monthly_contribution)} ({contribution})
- Expected annual return: {plan.expected_return_pct}%
- Expected inflation: {plan.inflation_pct}%
- Retirement spending in today's money: {_money(cur, plan.monthly_spending_today)}/month ({_money(cur, plan.monthly_spending_today * 12)}/year)

Calculated metrics:
- Projected balance at retirement (age {plan.retirement_age}): {_money(cur, summary.balance_at_retirement)}
- Required corpus at retirement: {_money(cur, summary.required_corpus)}
- Savings shortfall: {_money(cur, summary.shortfall)}
- Additional monthly saving needed (fixed): {_money(cur, extra.fixed_monthly)}
- Additional monthly saving needed (step-up at {plan.step_up_pct}% a year): {_money(cur, extra.step_up_monthly)}

Please provide:
1. A summary of the plan's feasibility in the {country.name} context.
2. 3-4 specific recommendations to improve the outcome, including thoughts on the {plan.strategy} strategy.
3. A brief risk assessment.

Format the response as Markdown."""


def _error_message(resp, provider: str) -> str:
    try:
        data = resp.json()
    except ValueError:
        return f"{provider} API error ({resp.status_code}): {resp.text}"
    err = data.get("error") if isinstance(data, dict) else None
    if isinstance(err, dict) and err.get("message"):
        return err["message"]
    if isinstance(data, dict) and data.get("message"):
        return data["message"]
    return f"{provider} API error ({resp.status_code}): {resp.text}"


def _post(provider: str, url: str, timeout: float, **kwargs) -> dict:
    try:
        resp = requests.post(url, timeout=timeout, **kwargs)
    except requests.RequestException as exc:
        raise AdviceError(f"Could not reach {provider}: {exc}") from exc
    if not resp.ok:
        logger.error("%s API error response (%s): %s", provider, resp.status_code, resp.text)
        raise AdviceError(_error_message(resp, provider))
    try:
        return resp.json()
    except ValueError as exc:
        raise AdviceError(f"{provider} returned a response that is not JSON") from exc


class GeminiProvider:
    url = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

    def __init__(self, api_key: str, model: str, timeout: float):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    def __call__(self, prompt: str) -> str:
        payload = _post(
            "Gemini", self.url.format(model=self.model), self.timeout,
            headers={"x-goog-api-key": self.api_key},
            json={"contents": [{"parts": [{"text": prompt}]}]},
        )
        candidates = payload.get("candidates") or [{}]
        parts = (candidates[0].get("content") or {}).get("parts") or []
        text = "".join(p.get("text", "") for p in parts).strip()
        return text or EMPTY_RESPONSE


class GrokProvider:
    url = "https://api.x.ai/v1/chat/completions"

    def __init__(self, api_key: str, model: str, timeout: float):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    def __call__(self, prompt: str) -> str:
        payload = _post(
            "Grok", self.url, self.timeout,
            headers={"Authorization": f"Bearer {self.api_key}"},
            json={
                "model": self.model,
                "messages": [
                    {"role": "system", "content": SYSTEM_ROLE},
                    {"role": "user", "content": prompt},
                ],
                "temperature": 0.7,
            },
        )
        try:
            text = payload["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as exc:
            raise AdviceError("Grok returned an unexpected response") from exc
        return text.strip() or EMPTY_RESPONSE


def make_provider(name: str = "gemini", settings: Optional[dict] = None) -> Callable[[str], str]:
    settings = settings or ai_settings()
    if name == "grok":
        if not settings["xai_api_key"]:
            raise MissingApiKeyError("XAI_API_KEY is not set in the server environment variables.")
        return GrokProvider(settings["xai_api_key"], settings["grok_model"], settings["timeout"])
    if not settings["gemini_api_key"]:
        raise MissingApiKeyError("GEMINI_API_KEY is not set in the server environment variables.")
    return GeminiProvider(settings["gemini_api_key"], settings["gemini_model"], settings["timeout"])


def request_advice(generate: Callable[[str], str], prompt: str,
                   retries: int = ADVICE_RETRIES) -> str:
    """Call the provider, retrying on failure; the last error propagates."""
    attempt = 0
    while True:
        try:
            return generate(prompt)
        except AdviceError as exc:
            if attempt >= retries:
                raise
            attempt += 1
            logger.warning("Advice request failed (%s), retrying (%d/%d)", exc, attempt, retries)
