from .requests import ExecuteRequest, ParseRequest, ValidateRequest
from .responses import ExecuteResponse, ParseResponse, ValidationResponse, amount_to_str

__all__ = [
    "ParseRequest",
    "ValidateRequest",
    "ExecuteRequest",
    "ParseResponse",
    "ValidationResponse",
    "ExecuteResponse",
    "amount_to_str",
]
