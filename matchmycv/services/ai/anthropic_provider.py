# matchmycv/services/ai/anthropic_provider.py
from __future__ import annotations
import json, logging
from typing import Optional

import anthropic
from anthropic import Anthropic

from .base import AIProvider, AIProviderError, AIRateLimitError

logger = logging.getLogger(__name__)


class AnthropicProvider(AIProvider):
    name = "anthropic"

    def __init__(self, client: Anthropic, model: str = "claude-3-haiku-20240307"):
        super().__init__(model)
        self.client = client

    @classmethod
    def from_config(cls, config) -> "AnthropicProvider":
        if not config.get("ANTHROPIC_API_KEY"):
            raise AIProviderError("ANTHROPIC_API_KEY is not configured")
        client = Anthropic(api_key=config["ANTHROPIC_API_KEY"])
        return cls(client, config.get("ANTHROPIC_MODEL") or "claude-3-haiku-20240307")

    def chat(self, system: str, user: str, *, temperature: float, max_tokens: int,
             schema: Optional[dict] = None, schema_name: Optional[str] = None) -> str:
        if schema:
            # no structured-output mode here, so the schema rides in the system prompt
            system = (
                f"{system}\n\nReturn ONLY a JSON object matching this JSON schema, "
                f"with no prose and no code fences:\n{json.dumps(schema)}"
            )
        try:
            msg = self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                system=system,
                messages=[{"role": "user", "content": user}],
            )
        except anthropic.RateLimitError as e:
            logger.warning("Anthropic rate limit: %s", e)
            raise AIRateLimitError() from e
        except anthropic.AnthropicError as e:
            logger.error("Anthropic request failed: %s", e)
            raise AIProviderError(f"AI request failed: {e}") from e

        text = "".join(
            getattr(block, "text", "") for block in (msg.content or [])
            if getattr(block, "type", None) == "text"
        )
        if not text.strip():
            raise AIProviderError("Unexpected response format from Anthropic")
        return text

    def generate_embeddings(self, text: str) -> list[float]:
        raise AIProviderError("Anthropic does not support embeddings. Use OpenAI for embeddings.")
