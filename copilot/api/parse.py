import logging
from typing import Optional

from fastapi import APIRouter, Depends

from ..config import settings
from ..core.execution import ExecutionBackend, ExecutionTracker, get_execution_backend
from ..core.intent import IntentParser, UnknownDraft, get_intent_parser
from ..core.intent.models import ConditionalOrderDraft, SwapDraft
from ..core.normalizer import resolve_chain
from ..core.render import quick_reply, response_text
from ..core.validation import DraftValidator, ValidationResult, get_draft_validator
from ..logging_config import bind_trade_context
from ..types import ParseRequest, ParseResponse, ValidationResponse

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/parse")
async def parse_command(
    req: ParseRequest,
    parser: IntentParser = Depends(get_intent_parser),
    validator: DraftValidator = Depends(get_draft_validator),
    backend: ExecutionBackend = Depends(get_execution_backend),
) -> ParseResponse:
    """Parse a trading command; validate it when a wallet is connected."""
    default_chain_id = resolve_chain(req.chain, settings.default_chain_id)

    draft = await parser.parse(req.text, default_chain_id=default_chain_id, history=req.recent_history)
    bind_trade_context(draft)
    if isinstance(draft, UnknownDraft):
        canned = quick_reply(req.text)
        if canned is not None:
            return ParseResponse(draft=draft.model_dump(mode="json"), response_text=canned)

    wallet_connected = bool(req.wallet_address)

    validation: Optional[ValidationResult] = None
    if isinstance(draft, ConditionalOrderDraft) or (isinstance(draft, SwapDraft) and wallet_connected):
        validation = await validator.validate(draft, default_slippage_percent=settings.default_slippage_percent)

    trade_status = None
    if validation is not None and validation.is_valid and wallet_connected:
        tracker = ExecutionTracker(
            draft,
            validation,
            backend=backend,
            timeout_s=settings.wallet_timeout_seconds,
        )
        trade_status = tracker.summary().to_dict()

    logger.info("Parsed command into %s draft (validated=%s)", draft.mode, validation is not None)
    return ParseResponse(
        draft=draft.model_dump(mode="json"),
        response_text=response_text(draft, validation, wallet_connected),
        trade_status=trade_status,
        validation=ValidationResponse.from_result(validation) if validation is not None else None,
    )
