from typing import Dict, Optional, Type

from .anthropic import AnthropicProvider
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
    ToolParameter,
    ToolParameterType,
)

# Registry of available LLM providers
PROVIDER_REGISTRY: Dict[str, Type[LLMProvider]] = {
    "anthropic": AnthropicProvider,
}


def get_llm_provider(
    provider_name: Optional[str] = None,
    model: Optional[str] = None,
    **kwargs,
) -> LLMProvider:
    """Instantiate the configured provider.

    Raises:
        ValueError: unknown provider or missing API key
    """
    from ...config import settings

    provider_key = ((provider_name or "").strip() or settings.llm_provider).lower()
    provider_class = PROVIDER_REGISTRY.get(provider_key)
    if provider_class is None:
        available = ", ".join(PROVIDER_REGISTRY.keys())
        raise ValueError(f"Unsupported provider '{provider_key}'. Available providers: {available}")

    api_key = settings.anthropic_api_key if provider_key == "anthropic" else None
    if not api_key:
        raise ValueError(f"No API key configured for provider: {provider_key}")

    resolved_model = (model or "").strip() or settings.llm_model
    kwargs.setdefault("timeout", settings.llm_timeout_seconds)
    return provider_class(api_key=api_key, model=resolved_model, **kwargs)


__all__ = [
    "LLMProvider",
    "LLMMessage",
    "LLMResponse",
    "LLMProviderError",
    "LLMProviderAPIError",
    "LLMProviderAuthError",
    "LLMProviderRateLimitError",
    "ToolCall",
    "ToolDefinition",
    "ToolParameter",
    "ToolParameterType",
    "AnthropicProvider",
    "PROVIDER_REGISTRY",
    "get_llm_provider",
]
