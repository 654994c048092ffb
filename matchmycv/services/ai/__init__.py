# matchmycv/services/ai/__init__.py
from __future__ import annotations
from flask import current_app

from .base import (
    AIProvider, AIProviderError, AIRateLimitError, AIResponseParseError,
    parse_json_response, normalize_analysis, weighted_overall,
)
from .anthropic_provider import AnthropicProvider
from .openai_provider import OpenAIProvider

PROVIDERS = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
}


def build_provider(config) -> AIProvider:
    name = (config.get("AI_PROVIDER") or "openai").strip().lower()
    cls = PROVIDERS.get(name)
    if cls is None:
        raise ValueError(f"Unsupported AI provider: {name}")
    return cls.from_config(config)


def get_ai_provider() -> AIProvider:
    """Provider for the current app, built on first use."""
    provider = current_app.config.get("AI_PROVIDER_INSTANCE")
    if provider is None:
        provider = build_provider(current_app.config)
        current_app.config["AI_PROVIDER_INSTANCE"] = provider
    return provider


__all__ = [
    "AIProvider", "AIProviderError", "AIRateLimitError", "AIResponseParseError",
    "AnthropicProvider", "OpenAIProvider", "build_provider", "get_ai_provider",
    "parse_json_response", "normalize_analysis", "weighted_overall",
]
