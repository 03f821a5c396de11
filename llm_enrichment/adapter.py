"""LLM adapters for product enrichment.

Provides a base interface, an adapter for OpenAI-compatible APIs and a
deterministic mock for testing.
"""

import json
import os
from abc import ABC, abstractmethod
from typing import Optional


class BaseLLMAdapter(ABC):
    """Abstract base for all LLM adapters."""

    @abstractmethod
    def generate(self, prompt: str) -> str:
        """Send a prompt to the LLM and return the raw response text.

        Args:
            prompt: The fully formatted prompt string.

        Returns:
            Raw string response from the model (expected to be JSON).
        """


class OpenAILLMAdapter(BaseLLMAdapter):
    """Adapter for OpenAI-compatible chat completion APIs in JSON mode."""

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        max_tokens: int = 512,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> None:
        """Initialise the OpenAI adapter.

        Args:
            model: Model identifier.
            max_tokens: Maximum tokens in the completion.
            api_key: OpenAI API key. Falls back to OPENAI_API_KEY env var.
            base_url: Optional base URL for OpenAI-compatible endpoints.
        """
        from openai import OpenAI

        resolved_key = api_key or os.environ.get("OPENAI_API_KEY", "")
        client_kwargs: dict = {"api_key": resolved_key}
        if base_url:
            client_kwargs["base_url"] = base_url

        self._client = OpenAI(**client_kwargs)
        self._model = model
        self._max_tokens = max_tokens

    def generate(self, prompt: str) -> str:
        response = self._client.chat.completions.create(
            model=self._model,
            messages=[{"role": "user", "content": prompt}],
            temperature=0,
            max_tokens=self._max_tokens,
            response_format={"type": "json_object"},
            stream=False,
        )
        return response.choices[0].message.content or ""


class MockLLMAdapter(BaseLLMAdapter):
    """Deterministic adapter for tests and offline runs.

    Answers title-analysis prompts by treating the first title token as the
    brand, and match prompts with a fixed negative judgement. Every prompt
    is recorded in ``prompts``.
    """

    def __init__(self, responses: Optional[list] = None) -> None:
        self._responses = list(responses or [])
        self.prompts: list = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self._responses:
            return self._responses.pop(0)
        if "Title:" in prompt:
            title = prompt.rsplit("Title:", 1)[1].strip()
            brand = title.split()[0] if title.split() else "Unknown"
            return json.dumps(
                {
                    "brand": brand,
                    "model": "",
                    "category": "Products",
                    "subcategory": "",
                    "specifications": [],
                    "confidence": 0.9,
                }
            )
        return json.dumps(
            {
                "is_same_product": False,
                "confidence": 0.0,
                "reasoning": "Mock adapter does not compare products.",
            }
        )
