from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..errors import ValidationErrorKind, ValidationFailure, remediation_for


class ValidationResult(BaseModel):
    """Outcome of checking a draft against live market data.

    Built fresh for every validation call and never cached.
    """

    is_valid: bool

    # Success fields
    input_token: Optional[str] = None
    output_token: Optional[str] = None
    required_input_amount: Optional[Decimal] = None
    expected_output_amount: Optional[Decimal] = None
    estimated_gas_cost: Optional[Decimal] = Field(default=None, description="Native currency units")
    gas_units: Optional[int] = None
    slippage_percent: Optional[float] = None
    is_estimate: bool = False
    warnings: List[str] = Field(default_factory=list)
    quote: Dict[str, Any] = Field(default_factory=dict)

    # Failure fields
    error_message: Optional[str] = None
    error_kind: Optional[ValidationErrorKind] = None
    remediation: Optional[str] = None

    @classmethod
    def failure(
        cls,
        kind: ValidationErrorKind,
        message: str,
        warnings: Optional[List[str]] = None,
    ) -> "ValidationResult":
        return cls(
            is_valid=False,
            error_message=message,
            error_kind=kind,
            remediation=remediation_for(kind),
            warnings=list(warnings or []),
        )

    @classmethod
    def from_error(cls, error: ValidationFailure) -> "ValidationResult":
        return cls.failure(error.kind, error.message)
