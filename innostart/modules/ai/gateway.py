"""ModelGateway: prompt in, completion text out, via litellm."""

from __future__ import annotations

from typing import Any

import litellm
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from innostart.core.config import settings
from innostart.core.errors import ModelEmptyResponse, ModelUnavailable

logger = structlog.get_logger()

litellm.set_verbose = False


class ModelGateway:
    """Thin wrapper around ``litellm.acompletion`` with bounded retry.

    Only ``ModelUnavailable`` is retried. ``asyncio.CancelledError`` is not an
    ``Exception`` subclass, so a disconnecting caller cancels the in-flight call
    instead of being converted into a model failure.
    """

    def __init__(
        self,
        model: str,
        api_key: str = "",
        temperature: float = 0.7,
        timeout: float = 90.0,
        max_attempts: int = 1,
        backoff_seconds: float = 1.0,
    ) -> None:
        self.model = model
        self.api_key = api_key
        self.temperature = temperature
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self.backoff_seconds = backoff_seconds

    async def complete(self, prompt: str) -> str:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(
                multiplier=self.backoff_seconds,
                min=self.backoff_seconds,
                max=self.backoff_seconds * 8,
            ),
            retry=retry_if_exception_type(ModelUnavailable),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._call(prompt, attempt.retry_state.attempt_number)
        raise ModelUnavailable("retry loop exited without a result")  # pragma: no cover

    async def _call(self, prompt: str, attempt: int) -> str:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature,
            "timeout": self.timeout,
        }
        if self.api_key:
            kwargs["api_key"] = self.api_key

        try:
            response = await litellm.acompletion(**kwargs)
        except Exception as exc:
            logger.warning(
                "model_call_attempt_failed",
                model=self.model,
                attempt=attempt,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise ModelUnavailable(f"{type(exc).__name__}: {exc}") from exc

        try:
            content = response.choices[0].message.content or ""
        except (AttributeError, IndexError, TypeError):
            content = ""

        if not content.strip():
            logger.warning("model_empty_response", model=self.model, attempt=attempt)
            raise ModelEmptyResponse(f"{self.model} returned an empty completion")

        logger.info(
            "model_call_success",
            model=self.model,
            attempt=attempt,
            completion_chars=len(content),
        )
        return content


def get_model_gateway() -> ModelGateway:
    """FastAPI dependency: a gateway configured from settings."""
    return ModelGateway(
        model=settings.AI_MODEL,
        api_key=settings.GEMINI_API_KEY,
        temperature=settings.AI_TEMPERATURE,
        timeout=settings.AI_TIMEOUT_SECONDS,
        max_attempts=settings.AI_MAX_ATTEMPTS,
        backoff_seconds=settings.AI_RETRY_BACKOFF_SECONDS,
    )
