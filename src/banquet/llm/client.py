"""
Banquet - Reasoning Gateway.

Wraps OpenAI with Instructor for validated structured outputs.
Every workflow reasoning call goes through ReasoningGateway.call().

Failure handling:
- Schema mismatches are retried inside Instructor (max_retries)
- Anything else (timeouts, rate limits, 5xx) is retried here with
  exponential backoff: backoff_seconds * 2**attempt
- After the last attempt a GatewayError is raised
"""

import asyncio
import logging
from typing import Any, Generic, TypeVar

import instructor
from openai import AsyncOpenAI
from pydantic import BaseModel, Field

from banquet.config import Settings, get_settings
from banquet.errors import GatewayError
from banquet.llm.model_router import get_stage_config
from banquet.llm.prompt_logger import log_prompt

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class TokenUsage(BaseModel):
    model: str = ""
    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


class GatewayResponse(BaseModel, Generic[T]):
    """Raw text plus the validated structured payload."""

    text: str = ""
    structured: T
    usage: TokenUsage = Field(default_factory=TokenUsage)
    retries: int = 0


def _usage_from_completion(completion: Any, model: str) -> TokenUsage:
    usage = getattr(completion, "usage", None)
    if usage is None:
        return TokenUsage(model=model)
    return TokenUsage(
        model=getattr(completion, "model", None) or model,
        prompt_tokens=getattr(usage, "prompt_tokens", 0) or 0,
        completion_tokens=getattr(usage, "completion_tokens", 0) or 0,
    )


def _text_from_completion(completion: Any, structured: BaseModel) -> str:
    try:
        content = completion.choices[0].message.content
    except (AttributeError, IndexError):
        content = None
    # Tool-call mode leaves content empty; fall back to the parsed payload
    return content or structured.model_dump_json()


class ReasoningGateway:
    """
    Structured LLM calls with retries and a per-call timeout.

    Usage:
        gateway = ReasoningGateway()
        response = await gateway.call(
            system_prompt="You are a dietary specialist...",
            user_prompt="Attendees: ...",
            response_model=DietaryAnalysis,
            stage="dietary",
        )
        response.structured.overall_complexity
    """

    def __init__(
        self,
        client: instructor.AsyncInstructor | None = None,
        *,
        settings: Settings | None = None,
        retries: int | None = None,
        backoff_seconds: float | None = None,
    ):
        self._settings = settings or get_settings()
        self._openai: AsyncOpenAI | None = None
        if client is None:
            # SDK retries off: backoff is handled in call()
            self._openai = AsyncOpenAI(
                api_key=self._settings.openai_api_key,
                timeout=self._settings.request_timeout_seconds,
                max_retries=0,
            )
            client = instructor.from_openai(self._openai)
        self._client = client
        self.retries = self._settings.gateway_retries if retries is None else retries
        self.backoff_seconds = (
            self._settings.gateway_backoff_seconds if backoff_seconds is None else backoff_seconds
        )

    async def call(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        response_model: type[T],
        stage: str = "default",
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        retries: int | None = None,
    ) -> GatewayResponse[T]:
        """
        Make a structured call, retrying transient failures.

        Args:
            system_prompt: Role / instructions
            user_prompt: The request with plan context
            response_model: Pydantic model the reply must validate against
            stage: Workflow stage name, selects defaults from the model router
            model, temperature, max_tokens: Override the stage defaults
            retries: Override the configured retry count

        Raises:
            GatewayError: every attempt failed
        """
        config = get_stage_config(stage)
        model = model or config["model"]
        temperature = config["temperature"] if temperature is None else temperature
        max_tokens = max_tokens or config["max_tokens"]
        retries = self.retries if retries is None else retries
        attempts = retries + 1

        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]

        last_error: Exception | None = None
        for attempt in range(attempts):
            try:
                structured, completion = await self._client.chat.completions.create_with_completion(
                    model=model,
                    messages=messages,
                    response_model=response_model,
                    temperature=temperature,
                    max_tokens=max_tokens,
                    max_retries=2,
                )
            except Exception as e:
                last_error = e
                log_prompt(
                    stage=stage,
                    model=model,
                    system_prompt=system_prompt,
                    user_prompt=user_prompt,
                    response_model=response_model.__name__,
                    error=str(e),
                    attempt=attempt,
                )
                if attempt < attempts - 1:
                    delay = self.backoff_seconds * (2**attempt)
                    logger.warning(
                        f"Reasoning call ({stage}) failed on attempt {attempt + 1}/{attempts}: {e}. "
                        f"Retrying in {delay:.1f}s"
                    )
                    await asyncio.sleep(delay)
                continue

            log_prompt(
                stage=stage,
                model=model,
                system_prompt=system_prompt,
                user_prompt=user_prompt,
                response_model=response_model.__name__,
                response=structured,
                attempt=attempt,
            )
            return GatewayResponse[response_model](
                text=_text_from_completion(completion, structured),
                structured=structured,
                usage=_usage_from_completion(completion, model),
                retries=attempt,
            )

        logger.error(f"Reasoning call ({stage}) failed after {attempts} attempts: {last_error}")
        raise GatewayError(
            f"Reasoning call failed after {attempts} attempts: {last_error}",
            attempts=attempts,
        ) from last_error

    async def close(self) -> None:
        if self._openai is not None:
            await self._openai.close()
