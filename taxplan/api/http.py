import logging
from decimal import Decimal
from typing import Any, Dict

from fastapi import Body, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from taxplan import __version__
from taxplan.api.error_map import explain_error, get_error_details
from taxplan.config import Settings, get_settings
from taxplan.core.brackets import (
    CAPITAL_GAINS_BRACKETS,
    FEDERAL_BRACKETS,
    NO_INCOME_TAX_STATES,
    SUPPORTED_STATES,
)
from taxplan.core.calc import calculate_capital_gains_tax, calculate_roth_conversion_tax
from taxplan.core.errors import ErrorKind, TaxInputError
from taxplan.core.models import FILING_STATUS_LABELS, BracketTable, FilingStatus, StateTaxPolicy
from taxplan.core.optimize import parse_parameters, plan_strategy
from taxplan.lifespan import build_application_lifespan

logger = logging.getLogger("taxplan.api")


async def _announce_settings(_: FastAPI) -> None:
    settings = get_settings()
    logger.info(
        "Planner API ready; version=%s sha=%s supported_states=%s",
        settings.build_version,
        settings.build_sha,
        len(SUPPORTED_STATES),
    )


app = FastAPI(
    title="Tax Scenario Planner",
    description="Roth conversion and capital-gains harvesting tax estimates.",
    version=__version__,
    lifespan=build_application_lifespan("planner", startup_hook=_announce_settings),
)


class ImpactRequest(BaseModel):
    amount: Decimal = Field(..., allow_inf_nan=True)
    filing_status: str = Field(
        FilingStatus.SINGLE.value,
        validation_alias=AliasChoices("filing_status", "filingStatus"),
    )
    state_code: str = Field(..., validation_alias=AliasChoices("state_code", "stateCode", "tax_state", "taxState"))

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


def _settings() -> Settings:
    return getattr(app.state, "settings", None) or get_settings()


def _policy() -> StateTaxPolicy:
    policy = getattr(app.state, "state_policy", None)
    return policy if policy is not None else _settings().state_policy()


def _table_payload(table: BracketTable) -> list[dict[str, str | None]]:
    return [
        {"rate": str(tier.rate), "upper_bound": None if tier.upper_bound is None else str(tier.upper_bound)}
        for tier in table
    ]


@app.exception_handler(TaxInputError)
async def _tax_input_error_handler(request: Request, exc: TaxInputError) -> JSONResponse:
    info = get_error_details(exc.kind)
    logger.info("Rejected %s: kind=%s field=%s", request.url.path, exc.kind.value, exc.field)
    return JSONResponse(status_code=info.status_code, content={"detail": explain_error(exc)})


@app.exception_handler(RequestValidationError)
async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # malformed bodies get the same detail shape as TaxInputError
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = first.get("loc") or ()
    wrapped = TaxInputError(
        ErrorKind.INVALID_INPUT,
        str(first.get("msg", "invalid request body")),
        field=str(loc[-1]) if loc else None,
    )
    return await _tax_input_error_handler(request, wrapped)


@app.get("/health")
def health():
    settings = _settings()
    return {
        "status": "ok",
        "build": {
            "version": settings.build_version,
            "sha": settings.build_sha,
        },
        "state_flat_rate": str(settings.state_flat_rate),
        "supported_states": len(SUPPORTED_STATES),
    }


@app.get("/reference/brackets/{filing_status}")
def reference_brackets(filing_status: str):
    status = FilingStatus.parse(filing_status)
    return {
        "filing_status": status.value,
        "label": FILING_STATUS_LABELS[status],
        "federal": _table_payload(FEDERAL_BRACKETS[status]),
        "capital_gains": _table_payload(CAPITAL_GAINS_BRACKETS[status]),
        "no_income_tax_states": sorted(NO_INCOME_TAX_STATES),
    }


@app.post("/calculate/roth-conversion")
def roth_conversion(req: ImpactRequest):
    impact = calculate_roth_conversion_tax(
        req.amount,
        req.filing_status,
        req.state_code,
        policy=_policy(),
        maximum=_settings().max_amount,
    )
    return impact.as_dict()


@app.post("/calculate/capital-gains")
def capital_gains(req: ImpactRequest):
    impact = calculate_capital_gains_tax(
        req.amount,
        req.filing_status,
        req.state_code,
        policy=_policy(),
        maximum=_settings().max_amount,
    )
    return impact.as_dict()


@app.post("/calculate/strategy")
def strategy(payload: Dict[str, Any] = Body(...)):
    params = parse_parameters(payload)
    return plan_strategy(params, policy=_policy(), maximum=_settings().max_amount).as_dict()
