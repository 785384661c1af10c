from fastapi import APIRouter, Depends

from ..config import settings
from ..core.validation import DraftValidator, get_draft_validator
from ..logging_config import bind_trade_context
from ..types import ValidateRequest, ValidationResponse

router = APIRouter()


@router.post("/validate")
async def validate_draft(
    req: ValidateRequest,
    validator: DraftValidator = Depends(get_draft_validator),
) -> ValidationResponse:
    bind_trade_context(req.draft)
    result = await validator.validate(req.draft, default_slippage_percent=settings.default_slippage_percent)
    return ValidationResponse.from_result(result)
