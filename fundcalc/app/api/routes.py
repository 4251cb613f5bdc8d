"""HTTP routes for the Flask API."""

import logging
from http import HTTPStatus
from typing import Any, Dict

from flask import Blueprint, jsonify, request
from pydantic import BaseModel, ValidationError
from werkzeug.exceptions import BadRequest

from fundcalc.core.dates import select_series
from fundcalc.core.metrics import calculate_fund_metrics, compare_funds
from fundcalc.core.ping import get_ping_message, get_version
from fundcalc.core.retirement import plan_retirement
from fundcalc.core.sip import (
    calculate_expected_sip,
    calculate_historical_sip,
    calculate_lumpsum,
    calculate_lumpsum_sip,
    calculate_sip_portfolio,
    compare_fund_sips,
)
from fundcalc.core.swp import calculate_swp, simulate_lifecycle
from fundcalc.core.target import solve_target_sip
from fundcalc.core.xirr import xirr_percent
from fundcalc.schemas.metrics import CompareResponse
from fundcalc.schemas.ping import PingResponse
from fundcalc.schemas.retirement import RetirementPlanRequest
from fundcalc.schemas.series import CompareRequest, SeriesRequest
from fundcalc.schemas.sip import (
    ExpectedSIPRequest,
    HistoricalSIPRequest,
    LumpsumRequest,
    LumpsumSIPRequest,
    SIPCompareRequest,
    SIPCompareResponse,
    SIPPortfolioRequest,
)
from fundcalc.schemas.swp import LifecycleRequest, SWPRequest
from fundcalc.schemas.target import TargetSIPRequest
from fundcalc.schemas.xirr import XIRRRequest, XIRRResult

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__)


@api_bp.errorhandler(ValidationError)
def _handle_validation_error(exc: ValidationError):
    """Convert Pydantic validation errors into JSON responses."""
    logger.info("Rejected %s: %d validation error(s)", request.path, exc.error_count())
    detail = exc.errors(include_url=False, include_context=False)
    return jsonify({"detail": detail}), HTTPStatus.UNPROCESSABLE_ENTITY


@api_bp.errorhandler(BadRequest)
def _handle_bad_request(exc: BadRequest):
    return jsonify({"detail": exc.description}), HTTPStatus.BAD_REQUEST


def _payload() -> Dict[str, Any]:
    return request.get_json(force=True, silent=False)


def _respond(model: BaseModel) -> Any:
    return jsonify(model.model_dump(mode="json"))


@api_bp.get("/ping")
def ping() -> Any:
    """Health-check endpoint."""
    return _respond(PingResponse(message=get_ping_message(), version=get_version()))


# -----------------------------
# Historical analysis
# -----------------------------


@api_bp.post("/metrics")
def metrics() -> Any:
    """Return and risk metrics for one NAV series."""
    payload = SeriesRequest.model_validate(_payload())
    series = select_series(payload.data, payload.period, payload.start_date, payload.end_date)
    return _respond(calculate_fund_metrics(series))


@api_bp.post("/metrics/compare")
def metrics_compare() -> Any:
    payload = CompareRequest.model_validate(_payload())
    funds = (
        (
            fund.scheme_code,
            fund.scheme_name,
            select_series(fund.data, payload.period, payload.start_date, payload.end_date),
        )
        for fund in payload.funds
    )
    return _respond(CompareResponse(funds=compare_funds(funds)))


@api_bp.post("/xirr")
def xirr() -> Any:
    payload = XIRRRequest.model_validate(_payload())
    rate = xirr_percent(payload.flows, bracket=payload.bracket)
    return _respond(XIRRResult(xirr=None if rate is None else round(rate, 4)))


# -----------------------------
# Accumulation calculators
# -----------------------------


@api_bp.post("/calc/lumpsum")
def lumpsum() -> Any:
    payload = LumpsumRequest.model_validate(_payload())
    return _respond(calculate_lumpsum(payload))


@api_bp.post("/calc/lumpsum-sip")
def lumpsum_sip() -> Any:
    payload = LumpsumSIPRequest.model_validate(_payload())
    return _respond(calculate_lumpsum_sip(payload))


@api_bp.post("/calc/sip")
def expected_sip() -> Any:
    """SIP valued at a constant expected annual rate."""
    payload = ExpectedSIPRequest.model_validate(_payload())
    return _respond(calculate_expected_sip(payload))


@api_bp.post("/calc/sip/historical")
def historical_sip() -> Any:
    """SIP replayed against a historical NAV series."""
    payload = HistoricalSIPRequest.model_validate(_payload())
    return _respond(calculate_historical_sip(payload))


@api_bp.post("/calc/sip/portfolio")
def sip_portfolio() -> Any:
    payload = SIPPortfolioRequest.model_validate(_payload())
    return _respond(calculate_sip_portfolio(payload))


@api_bp.post("/calc/sip/compare")
def sip_compare() -> Any:
    payload = SIPCompareRequest.model_validate(_payload())
    return _respond(SIPCompareResponse(funds=compare_fund_sips(payload)))


# -----------------------------
# Withdrawal and planning
# -----------------------------


@api_bp.post("/calc/swp")
def swp() -> Any:
    payload = SWPRequest.model_validate(_payload())
    return _respond(calculate_swp(payload))


@api_bp.post("/calc/lifecycle")
def lifecycle() -> Any:
    """Lumpsum + SIP accumulation followed by an SWP drawdown."""
    payload = LifecycleRequest.model_validate(_payload())
    return _respond(simulate_lifecycle(payload))


@api_bp.post("/calc/retirement")
def retirement() -> Any:
    payload = RetirementPlanRequest.model_validate(_payload())
    return _respond(plan_retirement(payload))


@api_bp.post("/calc/target-sip")
def target_sip() -> Any:
    payload = TargetSIPRequest.model_validate(_payload())
    return _respond(solve_target_sip(payload))
