from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional
import logging
import time

from pydantic import BaseModel, Field


# =============================================================================
# Tool Calling Models
# =============================================================================

class ToolParameterType(str, Enum):
    """JSON schema types usable in a tool's input"""
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"


class ToolParameter(BaseModel):
    """A single flat property of a tool's input schema"""
    name: str
    type: ToolParameterType
    description: str
    required: bool = True
    enum: Optional[List[str]] = None
    nullable: bool = False


class ToolDefinition(BaseModel):
    """A tool the model is asked (or forced) to call"""
    name: str
    description: str
    parameters: List[ToolParameter] = Field(default_factory=list)

    def to_anthropic_format(self) -> Dict[str, Any]:
        properties: Dict[str, Any] = {}
        required = []

        for param in self.parameters:
            prop: Dict[str, Any] = {"description": param.description}
            prop["type"] = [param.type.value, "null"] if param.nullable else param.type.value
            if param.enum:
                prop["enum"] = list(param.enum) + ([None] if param.nullable else [])
            properties[param.name] = prop
            if param.required:
                required.append(param.name)

        return {
            "name": self.name,
            "description": self.description,
            "input_schema": {
                "type": "object",
                "properties": properties,
                "required": required,
            },
        }


class ToolCall(BaseModel):
    """A tool invocation returned by the model"""
    id: str
    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Message Models
# =============================================================================

class LLMMessage(BaseModel):
    role: str  # "system", "user", "assistant"
    content: str = ""


class LLMResponse(BaseModel):
    content: Optional[str] = None
    tool_calls: Optional[List[ToolCall]] = None
    tokens_used: Optional[int] = None
    model: Optional[str] = None
    finish_reason: Optional[str] = None  # "end_turn", "tool_use", "max_tokens"
    response_time_ms: Optional[float] = None

    def first_tool_call(self, name: str) -> Optional[ToolCall]:
        for call in self.tool_calls or []:
            if call.name == name:
                return call
        return None


class LLMProvider(ABC):
    """Abstract base class for text-completion providers"""

    def __init__(self, api_key: str, model: str, **kwargs):
        self.api_key = api_key
        self.model = model
        self.logger = logging.getLogger(f"{self.__class__.__name__}")
        self._setup_client(**kwargs)

    @abstractmethod
    def _setup_client(self, **kwargs) -> None:
        """Initialize the provider-specific client"""

    @abstractmethod
    async def generate_response(
        self,
        messages: List[LLMMessage],
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        tools: Optional[List[ToolDefinition]] = None,
        force_tool: Optional[str] = None,
    ) -> LLMResponse:
        """Generate a completion.

        Args:
            messages: Conversation, system message first if any
            max_tokens: Maximum tokens in response
            temperature: Sampling temperature
            tools: Tool definitions the model may call
            force_tool: Name of a tool the model must call exactly once

        Returns:
            LLMResponse with content and/or tool_calls
        """

    def _measure_time(self, start_time: float) -> float:
        return (time.time() - start_time) * 1000


class LLMProviderError(Exception):
    """Base exception for LLM provider errors"""


class LLMProviderRateLimitError(LLMProviderError):
    """Raised when hitting rate limits"""


class LLMProviderAuthError(LLMProviderError):
    """Raised when authentication fails"""


class LLMProviderAPIError(LLMProviderError):
    """Raised when API request fails"""
