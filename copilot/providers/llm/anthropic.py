import time
from typing import Any, Dict, List, Optional

import anthropic
from anthropic import AsyncAnthropic

from .base import (
    LLMMessage,
    LLMProvider,
    LLMProviderAPIError,
    LLMProviderAuthError,
    LLMProviderError,
    LLMProviderRateLimitError,
    LLMResponse,
    ToolCall,
    ToolDefinition,
)


class AnthropicProvider(LLMProvider):
    """Claude messages API with tool calling"""

    def __init__(self, api_key: str, model: Optional[str] = None, **kwargs):
        if not model:
            raise ValueError("AnthropicProvider requires a model to be specified")
        super().__init__(api_key, model, **kwargs)

    def _setup_client(self, **kwargs) -> None:
        timeout = kwargs.get("timeout")
        try:
            if timeout is not None:
                self.client = AsyncAnthropic(api_key=self.api_key, timeout=timeout, max_retries=0)
            else:
                self.client = AsyncAnthropic(api_key=self.api_key, max_retries=0)
        except anthropic.AnthropicError as e:
            self.logger.error(f"Failed to initialize Anthropic client: {e}")
            raise LLMProviderAuthError(f"Failed to initialize Anthropic client: {e}") from e

    def _build_request(
        self,
        messages: List[LLMMessage],
        max_tokens: Optional[int],
        temperature: Optional[float],
        tools: Optional[List[ToolDefinition]],
        force_tool: Optional[str],
    ) -> Dict[str, Any]:
        system_parts = [m.content for m in messages if m.role == "system" and m.content]
        request_params: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": m.role, "content": m.content}
                for m in messages
                if m.role != "system"
            ],
            "max_tokens": max_tokens or 1024,
        }
        if system_parts:
            request_params["system"] = "\n\n".join(system_parts)
        if temperature is not None:
            request_params["temperature"] = temperature
        if tools:
            request_params["tools"] = [t.to_anthropic_format() for t in tools]
            if force_tool:
                request_params["tool_choice"] = {"type": "tool", "name": force_tool}
        return request_params

    async def generate_response(
        self,
        messages: List[LLMMessage],
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        tools: Optional[List[ToolDefinition]] = None,
        force_tool: Optional[str] = None,
    ) -> LLMResponse:
        start_time = time.time()
        request_params = self._build_request(messages, max_tokens, temperature, tools, force_tool)

        try:
            response = await self.client.messages.create(**request_params)
        except anthropic.AuthenticationError as e:
            self.logger.error(f"Anthropic authentication failed: {e}")
            raise LLMProviderAuthError(f"Authentication failed: {e}") from e
        except anthropic.RateLimitError as e:
            self.logger.warning(f"Anthropic rate limit: {e}")
            raise LLMProviderRateLimitError(f"Rate limit exceeded: {e}") from e
        except anthropic.APIError as e:
            self.logger.error(f"Anthropic API error: {e}")
            raise LLMProviderAPIError(f"API error: {e}") from e

        content = ""
        tool_calls: List[ToolCall] = []
        for block in response.content or []:
            block_type = getattr(block, "type", None)
            if block_type == "text":
                content += block.text
            elif block_type == "tool_use":
                arguments = block.input if isinstance(block.input, dict) else {}
                tool_calls.append(ToolCall(id=block.id, name=block.name, arguments=arguments))

        usage = getattr(response, "usage", None)
        return LLMResponse(
            content=content or None,
            tool_calls=tool_calls or None,
            tokens_used=usage.output_tokens if usage is not None else None,
            model=self.model,
            finish_reason=getattr(response, "stop_reason", None),
            response_time_ms=self._measure_time(start_time),
        )


__all__ = ["AnthropicProvider", "LLMProviderError"]
