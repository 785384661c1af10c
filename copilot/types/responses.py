from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..core.validation.models import ValidationResult


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def amount_to_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return format(value.normalize(), "f") if hasattr(value, "normalize") else str(value)


class ValidationResponse(CamelModel):
    is_valid: bool
    input_token: Optional[str] = None
    output_token: Optional[str] = None
    required_input_amount: Optional[str] = None
    expected_output_amount: Optional[str] = None
    estimated_gas_cost: Optional[str] = None
    gas_units: Optional[int] = None
    slippage_percent: Optional[float] = None
    is_estimate: bool = False
    warnings: List[str] = Field(default_factory=list)
    quote: Dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None
    error_kind: Optional[str] = None
    remediation: Optional[str] = None

    @classmethod
    def from_result(cls, result: ValidationResult) -> "ValidationResponse":
        return cls(
            is_valid=result.is_valid,
            input_token=result.input_token,
            output_token=result.output_token,
            required_input_amount=amount_to_str(result.required_input_amount),
            expected_output_amount=amount_to_str(result.expected_output_amount),
            estimated_gas_cost=amount_to_str(result.estimated_gas_cost),
            gas_units=result.gas_units,
            slippage_percent=result.slippage_percent,
            is_estimate=result.is_estimate,
            warnings=list(result.warnings),
            quote=dict(result.quote),
            error_message=result.error_message,
            error_kind=result.error_kind.value if result.error_kind else None,
            remediation=result.remediation,
        )


class ParseResponse(CamelModel):
    draft: Dict[str, Any] = Field(description="Parsed draft, discriminated by mode")
    response_text: str = Field(description="Chat reply for the command")
    trade_status: Optional[Dict[str, Any]] = Field(default=None, description="Pending trade status when validated")
    validation: Optional[ValidationResponse] = None


class ExecuteResponse(CamelModel):
    success: bool
    transaction_payload: Optional[Dict[str, Any]] = Field(default=None, description="{to, data, value, gasLimit}")
    resolved_amounts: Optional[Dict[str, Any]] = None
    trade_status: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None
    remediation: Optional[str] = None
