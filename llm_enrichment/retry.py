"""Retry logic for LLM formatting errors.

Retries only on JSON parse or schema validation failures; adapter
transport errors propagate immediately.
"""

import logging
from typing import List, Type, TypeVar

from pydantic import BaseModel

from llm_enrichment.adapter import BaseLLMAdapter
from llm_enrichment.validator import LLMOutputValidationError, validate_llm_output

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_RETRYABLE_STAGES = frozenset({"json_parse", "schema"})


class LLMRetryExhaustedError(Exception):
    """Raised when all retry attempts fail validation."""

    def __init__(
        self,
        attempts: int,
        last_error: LLMOutputValidationError,
        history: List[LLMOutputValidationError],
    ) -> None:
        self.attempts = attempts
        self.last_error = last_error
        self.history = history
        super().__init__(
            f"LLM output validation failed after {attempts} attempt(s). "
            f"Last error: {last_error}"
        )


def generate_with_retry(
    adapter: BaseLLMAdapter,
    prompt: str,
    schema: Type[ModelT],
    max_retries: int = 2,
) -> ModelT:
    """Generate and validate LLM output, retrying on formatting errors.

    Args:
        adapter: An LLM adapter implementing ``generate(prompt) -> str``.
        prompt: The fully formatted prompt string.
        schema: The pydantic model the response must satisfy.
        max_retries: Additional attempts after the first failure.

    Raises:
        LLMRetryExhaustedError: If all attempts fail with retryable errors.
    """
    errors: List[LLMOutputValidationError] = []
    total_attempts = 1 + max_retries

    for attempt in range(1, total_attempts + 1):
        raw = adapter.generate(prompt)
        try:
            result = validate_llm_output(raw, schema)
        except LLMOutputValidationError as exc:
            if exc.stage not in _RETRYABLE_STAGES:
                raise
            errors.append(exc)
            logger.warning(
                "Attempt %d/%d failed at stage '%s': %s",
                attempt,
                total_attempts,
                exc.stage,
                "; ".join(exc.errors),
            )
            continue
        if attempt > 1:
            logger.info("LLM output validated on attempt %d/%d", attempt, total_attempts)
        return result

    raise LLMRetryExhaustedError(
        attempts=total_attempts,
        last_error=errors[-1],
        history=errors,
    )
