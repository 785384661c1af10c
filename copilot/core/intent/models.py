"""
Draft Models

A Draft is the typed result of parsing a trading instruction. The ``mode``
field discriminates the variants; drafts are immutable once built.
"""

from decimal import Decimal, InvalidOperation
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from ..amounts import WIDE_CONTEXT
from ..errors import ParseAmbiguous

SWAP = "swap"
CONDITIONAL_ORDER = "conditional_order"
TRENDING = "trending"
UNKNOWN = "unknown"

Comparator = Literal[">=", "<=", ">", "<", "="]
SuspectedMode = Literal["swap", "conditional_order", "trending"]


def _coerce_amount(value: Any) -> str:
    """Accept numbers or numeric strings; keep a plain positive decimal string."""
    if isinstance(value, bool):
        raise ValueError("amount must be a number")
    text = str(value).strip().replace(",", "") if value is not None else ""
    try:
        parsed = Decimal(text)
    except InvalidOperation as exc:
        raise ValueError(f"amount is not a number: {value!r}") from exc
    if not parsed.is_finite() or parsed <= 0:
        raise ValueError("amount must be greater than zero")
    if isinstance(value, (int, float, Decimal)):
        return format(parsed.normalize(context=WIDE_CONTEXT), "f")
    return text


class _DraftBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    chain_id: int = Field(..., description="Target network")


class _Tradable(_DraftBase):
    amount: str = Field(..., description="Human-unit decimal string")
    slippage_percent: Optional[float] = Field(default=None, ge=0, le=50)

    @field_validator("amount", mode="before")
    @classmethod
    def _validate_amount(cls, value: Any) -> str:
        return _coerce_amount(value)

    @property
    def amount_decimal(self) -> Decimal:
        return Decimal(self.amount)

    @property
    def slippage_bps(self) -> Optional[int]:
        if self.slippage_percent is None:
            return None
        return int(round(self.slippage_percent * 100))


class SwapDraft(_Tradable):
    """Exchange ``source_token`` for ``dest_token``.

    ``amount`` is denominated in the source token unless ``reverse`` is set,
    in which case it is the desired amount of the destination token.
    """

    mode: Literal["swap"] = SWAP
    source_token: str = Field(..., min_length=1)
    dest_token: str = Field(..., min_length=1)
    reverse: bool = False


class ConditionalOrderDraft(_Tradable):
    """Buy or sell ``token`` once its price satisfies the trigger."""

    mode: Literal["conditional_order"] = CONDITIONAL_ORDER
    action: Literal["buy", "sell"]
    token: str = Field(..., min_length=1)
    trigger_comparator: Comparator
    trigger_price: Decimal = Field(..., gt=0)
    quote_token: str = Field(default="USDC", min_length=1)


class TrendingDraft(_DraftBase):
    mode: Literal["trending"] = TRENDING


class UnknownDraft(_DraftBase):
    mode: Literal["unknown"] = UNKNOWN
    suspected_mode: Optional[SuspectedMode] = None
    reason: str = ""


class HistoryMessage(BaseModel):
    """One earlier turn of the conversation."""

    role: Literal["user", "assistant"] = "user"
    content: str = ""


Draft = Annotated[
    Union[SwapDraft, ConditionalOrderDraft, TrendingDraft, UnknownDraft],
    Field(discriminator="mode"),
]

draft_adapter: TypeAdapter = TypeAdapter(Draft)


def is_tradable(draft: Any) -> bool:
    return isinstance(draft, (SwapDraft, ConditionalOrderDraft))


def require_tradable(draft: Any, text: str = "") -> Union[SwapDraft, ConditionalOrderDraft]:
    """Return ``draft`` if it can be executed, else raise ParseAmbiguous."""
    if not is_tradable(draft):
        reason = getattr(draft, "reason", None) or f"A {draft.mode} draft cannot be executed"
        raise ParseAmbiguous(reason, text=text)
    return draft


__all__ = [
    "SWAP",
    "CONDITIONAL_ORDER",
    "TRENDING",
    "UNKNOWN",
    "Comparator",
    "Draft",
    "SwapDraft",
    "ConditionalOrderDraft",
    "TrendingDraft",
    "UnknownDraft",
    "HistoryMessage",
    "draft_adapter",
    "is_tradable",
    "require_tradable",
]
