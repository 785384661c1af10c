"""
Intent Parser

Three-stage pipeline turning free text into a Draft:

1. deterministic templates (``patterns``)
2. the AI interpreter, when one is configured
3. keyword fallback

Parsing never raises for ambiguous input; it returns an ``UnknownDraft``.
"""

import logging
import re
from typing import Optional, Sequence, Union

from ..normalizer import normalize_token
from .fallback import keyword_fallback
from .interpreter import DRAFT_TOOL, IntentInterpreter, InterpreterUnavailable
from .models import (
    SWAP,
    ConditionalOrderDraft,
    Draft,
    HistoryMessage,
    SwapDraft,
    UnknownDraft,
)
from .patterns import clean_text, match_template

logger = logging.getLogger(__name__)

CONTINUATION_WORDS = {"yes", "ok", "okay", "sure", "that", "it", "this", "execute", "confirm", "do"}
CONTEXT_WINDOW = 3
MAX_CONTINUATION_WORDS = 4

HistoryItem = Union[HistoryMessage, dict]


def build_contextual_command(text: str, history: Optional[Sequence[HistoryItem]] = None) -> str:
    """Prefix short follow-ups ("yes, do it") with the user's recent messages."""
    if not history:
        return text
    words = re.findall(r"[a-z']+", text.lower())
    if not words or len(words) > MAX_CONTINUATION_WORDS:
        return text
    if not CONTINUATION_WORDS.intersection(words):
        return text

    recent = [HistoryMessage.model_validate(item) for item in list(history)[-CONTEXT_WINDOW:]]
    context = " ".join(m.content.strip() for m in recent if m.role == "user" and m.content.strip())
    if not context:
        return text
    return f"{context} {text}"


def _post_normalize(draft: Draft) -> Draft:
    if isinstance(draft, SwapDraft):
        source = normalize_token(draft.source_token)
        dest = normalize_token(draft.dest_token)
        if not source or not dest:
            return UnknownDraft(
                chain_id=draft.chain_id,
                suspected_mode=SWAP,
                reason="Swap is missing a token",
            )
        return draft.model_copy(update={"source_token": source, "dest_token": dest})
    if isinstance(draft, ConditionalOrderDraft):
        return draft.model_copy(update={
            "token": normalize_token(draft.token),
            "quote_token": normalize_token(draft.quote_token) or "USDC",
        })
    return draft


class IntentParser:
    """Parse natural-language trading commands into drafts."""

    def __init__(self, interpreter: Optional[IntentInterpreter] = None):
        self.interpreter = interpreter

    async def parse(
        self,
        text: str,
        *,
        default_chain_id: int,
        history: Optional[Sequence[HistoryItem]] = None,
    ) -> Draft:
        command = build_contextual_command(text, history)
        if not clean_text(command):
            return UnknownDraft(chain_id=default_chain_id, reason="Empty command")

        draft = match_template(command, default_chain_id)
        stage = "template"

        if draft is None and self.interpreter is not None:
            try:
                draft = await self.interpreter.interpret(
                    command, DRAFT_TOOL, default_chain_id=default_chain_id
                )
                stage = "interpreter"
            except InterpreterUnavailable as exc:
                logger.info("Interpreter unavailable, using keyword fallback: %s", exc)

        if draft is None:
            draft = keyword_fallback(command, default_chain_id)
            stage = "keywords"

        draft = _post_normalize(draft)
        logger.debug("Parsed command via %s stage: mode=%s", stage, draft.mode)
        return draft


_intent_parser: Optional[IntentParser] = None


def get_intent_parser() -> IntentParser:
    """Get the singleton parser, wired to the LLM interpreter when a key is configured."""
    global _intent_parser
    if _intent_parser is None:
        from ...config import settings
        from .interpreter import LLMIntentInterpreter

        interpreter = None
        if settings.has_llm_key:
            interpreter = LLMIntentInterpreter(
                timeout_s=settings.llm_timeout_seconds,
                max_tokens=settings.llm_max_tokens,
                temperature=settings.llm_temperature,
            )
        _intent_parser = IntentParser(interpreter=interpreter)
    return _intent_parser


__all__ = [
    "CONTINUATION_WORDS",
    "IntentParser",
    "build_contextual_command",
    "get_intent_parser",
]
