"""
HTTP relay for the AI advisor, for clients that cannot hold provider keys.

    uvicorn server:app --port 3000
"""
import asyncio
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, model_validator

from advice import AdviceError, build_prompt, make_provider
from config import ADVICE_SERVER_TIMEOUT_S, APP_NAME, LOG_LEVEL, Country
from shortfall import AdditionalSavings, PlanSummary, assess
from simulation import PlanInput

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


class PlanModel(BaseModel):
    current_age: int = Field(..., ge=0, le=120)
    retirement_age: int = Field(..., ge=0, le=120)
    life_expectancy: int = Field(..., ge=0, le=130)
    current_savings: float = Field(..., ge=0)
    monthly_contribution: float = Field(default=0, ge=0)
    contribution_type: str = Field(default="fixed", pattern="^(fixed|step-up)$")
    step_up_pct: float = 0.0
    expected_return_pct: float = Field(..., gt=-100)
    inflation_pct: float = Field(..., gt=-100)
    monthly_spending_today: float = Field(..., ge=0)
    strategy: str = Field(default="normal", pattern="^(normal|bucket)$")
    bucket_size_years: int = 1

    @model_validator(mode="after")
    def ages_in_order(self):
        if not self.current_age <= self.retirement_age <= self.life_expectancy:
            raise ValueError("ages must satisfy current_age <= retirement_age <= life_expectancy")
        return self

    def to_plan(self) -> PlanInput:
        return PlanInput(**self.model_dump())


class CountryModel(BaseModel):
    name: str
    code: str
    currency_symbol: str
    currency_code: str


class SavingsModel(BaseModel):
    fixed_monthly: float = Field(default=0, ge=0)
    step_up_monthly: float = Field(default=0, ge=0)


class AdviceRequest(BaseModel):
    plan: PlanModel
    country: CountryModel
    required_corpus: Optional[float] = None
    balance_at_retirement: Optional[float] = None
    additional_savings: Optional[SavingsModel] = None
    model: str = "gemini"


def _summary_for(req: AdviceRequest, plan: PlanInput) -> PlanSummary:
    """Metrics sent by the client win; anything missing is computed here."""
    computed = assess(plan)
    required = computed.required_corpus if req.required_corpus is None else req.required_corpus
    at_retirement = (computed.balance_at_retirement if req.balance_at_retirement is None
                     else req.balance_at_retirement)
    extra = computed.additional_savings
    if req.additional_savings is not None:
        extra = AdditionalSavings(**req.additional_savings.model_dump())
    return PlanSummary(
        required_corpus=required,
        balance_at_retirement=at_retirement,
        shortfall=max(0.0, required - at_retirement),
        additional_savings=extra,
        final_balance=computed.final_balance,
        peak_balance=computed.peak_balance,
        years_funded=computed.years_funded,
        on_track=computed.on_track,
    )


app = FastAPI(title=APP_NAME)


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    messages = []
    for err in exc.errors():
        where = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{where}: {err['msg']}" if where else err["msg"])
    return JSONResponse(status_code=422, content={"error": "; ".join(messages)})


@app.get("/api/health")
def health() -> dict:
    return {"status": "ok"}


@app.post("/api/advice")
async def advice(req: AdviceRequest):
    plan = req.plan.to_plan()
    country = Country(**req.country.model_dump())
    prompt = build_prompt(plan, country, _summary_for(req, plan))

    try:
        generate = make_provider(req.model)
        loop = asyncio.get_running_loop()
        text = await asyncio.wait_for(loop.run_in_executor(None, generate, prompt),
                                      timeout=ADVICE_SERVER_TIMEOUT_S)
    except asyncio.TimeoutError:
        logger.warning("Advice request timed out after %ss", ADVICE_SERVER_TIMEOUT_S)
        return JSONResponse(status_code=408, content={"error": "Request has timed out."})
    except AdviceError as exc:
        logger.error("Server AI error: %s", exc)
        return JSONResponse(status_code=500, content={"error": str(exc) or "Internal Server Error"})
    return {"text": text}


@app.api_route("/api/{path:path}", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
def unknown_api(path: str, request: Request):
    logger.warning("Unknown API call: %s %s", request.method, request.url.path)
    return JSONResponse(status_code=404, content={"error": "Route not found", "url": request.url.path})
