"""
Draft Validation Module

Quotes and checks parsed drafts before they are executed.
"""

from .models import ValidationResult
from .validator import DraftValidator, QuoteSource, get_draft_validator

__all__ = [
    "DraftValidator",
    "QuoteSource",
    "ValidationResult",
    "get_draft_validator",
]
