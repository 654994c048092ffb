# matchmycv/services/ai/openai_provider.py
from __future__ import annotations
import logging
from typing import Optional

import openai
from openai import OpenAI

from .base import AIProvider, AIProviderError, AIRateLimitError

logger = logging.getLogger(__name__)


class OpenAIProvider(AIProvider):
    """Any OpenAI-compatible endpoint (OpenAI, OpenRouter, local gateways)."""

    name = "openai"

    def __init__(self, client: OpenAI, model: str = "gpt-4o-mini",
                 embeddings_model: str = "text-embedding-3-small"):
        super().__init__(model)
        self.client = client
        self.embeddings_model = embeddings_model

    @classmethod
    def from_config(cls, config) -> "OpenAIProvider":
        if not config.get("OPENAI_API_KEY"):
            raise AIProviderError("OPENAI_API_KEY is not configured")
        client = OpenAI(
            api_key=config["OPENAI_API_KEY"],
            base_url=config.get("OPENAI_BASE_URL") or None,
            default_headers={
                "HTTP-Referer": config.get("APP_URL") or "http://localhost:5000",
                "X-Title": "MatchMyCV - AI CV Optimization",
            },
        )
        return cls(client, config.get("LLM_MODEL") or "gpt-4o-mini",
                   config.get("EMBEDDINGS_MODEL") or "text-embedding-3-small")

    def chat(self, system: str, user: str, *, temperature: float, max_tokens: int,
             schema: Optional[dict] = None, schema_name: Optional[str] = None) -> str:
        kwargs = {}
        if schema:
            kwargs["response_format"] = {
                "type": "json_schema",
                "json_schema": {"name": schema_name or "response", "strict": True, "schema": schema},
            }
        try:
            resp = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                temperature=temperature,
                max_tokens=max_tokens,
                **kwargs,
            )
        except openai.RateLimitError as e:
            logger.warning("OpenAI rate limit: %s", e)
            raise AIRateLimitError() from e
        except openai.OpenAIError as e:
            logger.error("OpenAI request failed: %s", e)
            raise AIProviderError(f"AI request failed: {e}") from e

        content = resp.choices[0].message.content if resp.choices else None
        if not content:
            raise AIProviderError("No response from AI service")
        return content

    def generate_embeddings(self, text: str) -> list[float]:
        try:
            resp = self.client.embeddings.create(model=self.embeddings_model, input=text)
        except openai.RateLimitError as e:
            raise AIRateLimitError() from e
        except openai.OpenAIError as e:
            raise AIProviderError(f"Failed to generate embeddings: {e}") from e
        return list(resp.data[0].embedding)
