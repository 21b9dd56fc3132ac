"""Chat-completion client for the OpenAI-compatible API."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Union

from openai import AsyncOpenAI, OpenAIError

from roomforge.core.exceptions import LLMError
from roomforge.inference.models import (
    InferenceConfig,
    InferenceResponse,
    Message,
    TokenUsage,
)
from roomforge.settings.inference import InferenceSettings

logger = logging.getLogger(__name__)


class InferenceClient:
    """Thin async wrapper around ``openai.AsyncOpenAI``.

    Every agent talks to the language model as an untyped text channel:
    ``generate`` returns the raw completion text and the callers parse it.

    Example:
        ```python
        client = InferenceClient(InferenceSettings(api_key="sk-..."))
        text = await client.generate("Xin chào", system_prompt="Be brief")
        ```
    """

    def __init__(self, settings: Optional[InferenceSettings] = None):
        self._settings = settings or InferenceSettings()
        self._client: Optional[AsyncOpenAI] = None

    @property
    def model(self) -> str:
        return self._settings.model

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self._settings.api_key or None,
                base_url=self._settings.base_url,
                timeout=self._settings.timeout_seconds,
            )
        return self._client

    async def complete(
        self,
        messages: list[Message],
        config: Optional[InferenceConfig] = None,
    ) -> InferenceResponse:
        config = config or InferenceConfig()
        client = self._get_client()

        kwargs: dict[str, Any] = {
            "model": config.model or self._settings.model,
            "messages": [m.to_openai_format() for m in messages],
            "temperature": (
                config.temperature
                if config.temperature is not None
                else self._settings.temperature
            ),
            "max_tokens": config.max_tokens or self._settings.max_tokens,
        }
        if config.stop:
            kwargs["stop"] = config.stop

        try:
            response = await client.chat.completions.create(**kwargs)
        except OpenAIError as e:
            raise LLMError(f"Completion request failed: {e}", model=kwargs["model"]) from e

        return self._parse_response(response)

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        config: Optional[InferenceConfig] = None,
    ) -> str:
        messages = []
        if system_prompt:
            messages.append(Message.system(system_prompt))
        messages.append(Message.user(prompt))

        response = await self.complete(messages, config=config)
        return response.content

    def _parse_response(self, response: Any) -> InferenceResponse:
        choice = response.choices[0]
        usage = TokenUsage(
            prompt_tokens=response.usage.prompt_tokens if response.usage else 0,
            completion_tokens=response.usage.completion_tokens if response.usage else 0,
            total_tokens=response.usage.total_tokens if response.usage else 0,
        )
        return InferenceResponse(
            content=choice.message.content or "",
            finish_reason=choice.finish_reason or "stop",
            model=response.model,
            usage=usage,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def __aenter__(self) -> "InferenceClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


Reply = Union[str, Exception]


class MockInferenceClient:
    """Scripted inference client for tests.

    Replies are consumed in order; an ``Exception`` instance in the script is
    raised instead of returned. A ``handler`` callable, when given, computes
    the reply from the messages and takes precedence over the script.
    """

    def __init__(
        self,
        replies: Optional[list[Reply]] = None,
        handler: Optional[Callable[[list[Message]], Reply]] = None,
        default: str = "",
    ):
        self._replies: list[Reply] = list(replies or [])
        self._handler = handler
        self._default = default
        self.calls: list[list[Message]] = []

    @property
    def model(self) -> str:
        return "mock"

    async def complete(
        self,
        messages: list[Message],
        config: Optional[InferenceConfig] = None,
    ) -> InferenceResponse:
        self.calls.append(list(messages))

        if self._handler is not None:
            reply = self._handler(messages)
        elif self._replies:
            reply = self._replies.pop(0)
        else:
            reply = self._default

        if isinstance(reply, Exception):
            raise reply
        return InferenceResponse(content=reply, model="mock")

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        config: Optional[InferenceConfig] = None,
    ) -> str:
        messages = []
        if system_prompt:
            messages.append(Message.system(system_prompt))
        messages.append(Message.user(prompt))
        response = await self.complete(messages, config=config)
        return response.content

    async def close(self) -> None:
        pass
