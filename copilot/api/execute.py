import logging
from typing import Dict

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..config import settings
from ..core.errors import ExecutionErrorKind, ParseAmbiguous, ValidationErrorKind, remediation_for
from ..core.execution import ExecutionBackend, ExecutionTracker, TradeState, get_execution_backend
from ..core.intent import require_tradable
from ..core.validation import DraftValidator, get_draft_validator
from ..logging_config import bind_trade_context
from ..types import ExecuteRequest, ExecuteResponse, amount_to_str

router = APIRouter()
logger = logging.getLogger(__name__)

ERROR_STATUS: Dict[str, int] = {
    ValidationErrorKind.MISSING_FIELD.value: 400,
    ValidationErrorKind.UNSUPPORTED_PAIR.value: 422,
    ValidationErrorKind.UPSTREAM_UNAVAILABLE.value: 502,
    ValidationErrorKind.CONFIGURATION_MISSING.value: 503,
    ExecutionErrorKind.PREPARATION_FAILED.value: 422,
    ExecutionErrorKind.WALLET_REJECTED.value: 409,
    ExecutionErrorKind.UPSTREAM_FAILED.value: 502,
    ExecutionErrorKind.NOT_IMPLEMENTED.value: 501,
}


def _error(body: ExecuteResponse) -> JSONResponse:
    status = ERROR_STATUS.get(body.error_kind or "", 400)
    return JSONResponse(status_code=status, content=body.model_dump(mode="json", by_alias=True))


@router.post("/execute", response_model=ExecuteResponse)
async def execute_draft(
    req: ExecuteRequest,
    validator: DraftValidator = Depends(get_draft_validator),
    backend: ExecutionBackend = Depends(get_execution_backend),
):
    """Re-validate a draft and prepare its transaction for the wallet."""
    try:
        draft = require_tradable(req.draft)
    except ParseAmbiguous as exc:
        kind = ValidationErrorKind.MISSING_FIELD
        return _error(ExecuteResponse(
            success=False,
            error=exc.message,
            error_kind=kind.value,
            remediation=remediation_for(kind),
        ))

    bind_trade_context(draft)
    validation = await validator.validate(draft, default_slippage_percent=settings.default_slippage_percent)
    if not validation.is_valid:
        return _error(ExecuteResponse(
            success=False,
            error=validation.error_message,
            error_kind=validation.error_kind.value if validation.error_kind else None,
            remediation=validation.remediation,
        ))

    tracker = ExecutionTracker(draft, validation, backend=backend, timeout_s=settings.wallet_timeout_seconds)
    status = await tracker.confirm(req.wallet_address)
    summary = tracker.summary().to_dict()

    if status.state is TradeState.FAILED:
        return _error(ExecuteResponse(
            success=False,
            trade_status=summary,
            error=status.error_detail,
            error_kind=status.error_kind.value if status.error_kind else None,
            remediation=status.remediation,
        ))

    payload = status.payload
    if payload is None:
        raise ValueError("Tracker reached awaiting_confirmation without a payload")
    logger.info("Prepared transaction for %s on chain %s", req.wallet_address, payload.chain_id)
    return ExecuteResponse(
        success=True,
        transaction_payload=payload.to_dict(),
        resolved_amounts={
            "inputToken": validation.input_token,
            "inputAmount": amount_to_str(payload.input_amount or validation.required_input_amount),
            "outputToken": validation.output_token,
            "outputAmount": amount_to_str(payload.output_amount or validation.expected_output_amount),
            "isEstimate": validation.is_estimate,
            "slippagePercent": validation.slippage_percent,
        },
        trade_status=summary,
    )
