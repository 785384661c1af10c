"""
Intent Parsing Module

Turns natural-language trading commands into typed drafts.
"""

from .interpreter import (
    DRAFT_TOOL,
    IntentInterpreter,
    InterpreterUnavailable,
    LLMIntentInterpreter,
    draft_from_payload,
)
from .models import (
    ConditionalOrderDraft,
    Draft,
    HistoryMessage,
    SwapDraft,
    TrendingDraft,
    UnknownDraft,
    draft_adapter,
    is_tradable,
    require_tradable,
)
from .parser import IntentParser, build_contextual_command, get_intent_parser

__all__ = [
    # Parser
    "IntentParser",
    "get_intent_parser",
    "build_contextual_command",
    # Interpreter
    "IntentInterpreter",
    "LLMIntentInterpreter",
    "InterpreterUnavailable",
    "DRAFT_TOOL",
    "draft_from_payload",
    # Models
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
