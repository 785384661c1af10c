"""
Error Classification

Defines the error taxonomy for the intent pipeline. Parsing and validation
report expected failures as tagged results; these exception types are what
providers and collaborators raise so the validator and execution tracker can
convert them into those results. Every kind carries a remediation hint that is
shown to the user instead of the raw upstream text.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ValidationErrorKind(str, Enum):
    """Why a draft could not be validated."""

    MISSING_FIELD = "missing-field"
    UNSUPPORTED_PAIR = "unsupported-pair"
    UPSTREAM_UNAVAILABLE = "upstream-unavailable"
    CONFIGURATION_MISSING = "configuration-missing"


class ExecutionErrorKind(str, Enum):
    """Why a trade left the happy path."""

    PREPARATION_FAILED = "preparation-failed"
    WALLET_REJECTED = "wallet-rejected"
    UPSTREAM_FAILED = "upstream-failed"
    NOT_IMPLEMENTED = "not-implemented"


REMEDIATION_HINTS: Dict[str, str] = {
    ValidationErrorKind.MISSING_FIELD.value: (
        'Tell me both tokens and an amount, e.g. "swap 1 ETH to USDC".'
    ),
    ValidationErrorKind.UNSUPPORTED_PAIR.value: (
        "That token pair is not supported on this network. Try another network "
        "or a major token such as ETH, USDC or USDT."
    ),
    ValidationErrorKind.UPSTREAM_UNAVAILABLE.value: (
        "The pricing service is not responding right now. Please try again in a moment."
    ),
    ValidationErrorKind.CONFIGURATION_MISSING.value: (
        "Trading is not configured on this server yet. Ask the operator to set the quote API key."
    ),
    ExecutionErrorKind.PREPARATION_FAILED.value: (
        "Check your balance and try a smaller amount."
    ),
    ExecutionErrorKind.WALLET_REJECTED.value: (
        "The transaction was not approved in your wallet. Start the trade again when you are ready."
    ),
    ExecutionErrorKind.UPSTREAM_FAILED.value: (
        "The transaction did not go through. Review it in your wallet or block explorer and try again."
    ),
    ExecutionErrorKind.NOT_IMPLEMENTED.value: (
        "Conditional orders can be drafted and encoded but not yet submitted. "
        "Use a market swap in the meantime."
    ),
}


def remediation_for(kind: "ValidationErrorKind | ExecutionErrorKind | str") -> str:
    """Return the user-facing hint for an error kind."""
    key = kind.value if isinstance(kind, Enum) else str(kind)
    return REMEDIATION_HINTS.get(key, "Please try again.")


@dataclass
class ErrorContext:
    """Additional context about an error."""

    provider: Optional[str] = None
    chain_id: Optional[int] = None
    status_code: Optional[int] = None
    upstream_detail: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


class CopilotError(Exception):
    """Base class for all intent pipeline errors."""

    def __init__(self, message: str, context: Optional[ErrorContext] = None):
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()


class ParseAmbiguous(CopilotError):
    """The text carried no tradable intent.

    The parser itself never raises this; it is for callers that require a
    tradable draft (e.g. the execute endpoint).
    """

    def __init__(self, message: str = "Could not determine a trading intent", text: str = ""):
        super().__init__(message, ErrorContext(details={"text": text}))
        self.text = text


class ValidationFailure(CopilotError):
    """Base class for draft validation failures."""

    kind: ValidationErrorKind = ValidationErrorKind.MISSING_FIELD

    @property
    def remediation(self) -> str:
        return remediation_for(self.kind)


class MissingFieldError(ValidationFailure):
    """A required draft field is absent or malformed."""

    kind = ValidationErrorKind.MISSING_FIELD


class UnsupportedPairError(ValidationFailure):
    """A token, pair or price feed is not available on the target network."""

    kind = ValidationErrorKind.UNSUPPORTED_PAIR


class UpstreamUnavailableError(ValidationFailure):
    """An external service errored, timed out or returned garbage."""

    kind = ValidationErrorKind.UPSTREAM_UNAVAILABLE


class ConfigurationMissingError(ValidationFailure):
    """A credential or endpoint needed for the call is not configured."""

    kind = ValidationErrorKind.CONFIGURATION_MISSING


class PredicateDecodeError(CopilotError):
    """Malformed predicate bytes. Fatal to the single decode operation."""

    def __init__(self, message: str, data: bytes = b""):
        super().__init__(message, ErrorContext(details={"length": len(data)}))
        self.data = data


class ExecutionFailure(CopilotError):
    """A failure while preparing, approving or confirming a trade."""

    def __init__(
        self,
        message: str,
        kind: ExecutionErrorKind = ExecutionErrorKind.UPSTREAM_FAILED,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(message, context)
        self.kind = kind

    @property
    def remediation(self) -> str:
        return remediation_for(self.kind)


class WalletRejectedError(ExecutionFailure):
    """The wallet collaborator declined to sign or broadcast."""

    def __init__(self, message: str = "Transaction rejected in wallet"):
        super().__init__(message, kind=ExecutionErrorKind.WALLET_REJECTED)


def classify_upstream_message(message: str) -> ExecutionErrorKind:
    """
    Classify a raw upstream error message into an execution error kind.

    Balance and allowance problems are preparation failures the user can fix
    by changing the trade; everything else is treated as an upstream failure.
    """
    lowered = (message or "").lower()

    preparation_patterns = [
        "insufficient",
        "not enough",
        "exceeds balance",
        "allowance",
        "cannot estimate",
        "amount is not set",
    ]
    if any(p in lowered for p in preparation_patterns):
        return ExecutionErrorKind.PREPARATION_FAILED

    rejection_patterns = ["user rejected", "user denied", "rejected the request"]
    if any(p in lowered for p in rejection_patterns):
        return ExecutionErrorKind.WALLET_REJECTED

    return ExecutionErrorKind.UPSTREAM_FAILED
