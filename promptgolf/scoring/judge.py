"""
LLM judge clients.

A judge turns (system instructions, user content) into a stream of text
fragments. The scoring service accumulates the fragments and parses the
result once the stream ends. Provider SDK clients are created lazily so
importing this module needs no API keys.
"""

import logging
from typing import AsyncIterator, Dict, Optional, Protocol

import anthropic
import httpx
import openai

from ..config import JUDGE_DEFAULT_MODEL, JUDGE_MAX_TOKENS, JUDGE_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class JudgeClient(Protocol):
    """Structured-generation capability used by the scoring service."""

    def stream(
        self,
        system: str,
        prompt: str,
        model: str,
        temperature: float,
    ) -> AsyncIterator[str]:
        ...


class OpenAIJudge:
    """Streams chat completions from an OpenAI-compatible endpoint."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = JUDGE_TIMEOUT_SECONDS,
    ):
        self._api_key = api_key
        self._base_url = base_url
        self._timeout = timeout
        self._client: Optional[openai.AsyncOpenAI] = None

    @property
    def client(self) -> openai.AsyncOpenAI:
        if self._client is None:
            self._client = openai.AsyncOpenAI(
                api_key=self._api_key,
                base_url=self._base_url.rstrip("/") if self._base_url else None,
                timeout=httpx.Timeout(self._timeout),
                max_retries=0,
            )
        return self._client

    async def stream(
        self,
        system: str,
        prompt: str,
        model: str,
        temperature: float,
    ) -> AsyncIterator[str]:
        stream = await self.client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            temperature=temperature,
            stream=True,
        )
        async for chunk in stream:
            if chunk.choices and chunk.choices[0].delta.content:
                yield chunk.choices[0].delta.content


class AnthropicJudge:
    """Streams messages from the Anthropic API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = JUDGE_TIMEOUT_SECONDS,
        max_tokens: int = JUDGE_MAX_TOKENS,
    ):
        self._api_key = api_key
        self._timeout = timeout
        self._max_tokens = max_tokens
        self._client: Optional[anthropic.AsyncAnthropic] = None

    @property
    def client(self) -> anthropic.AsyncAnthropic:
        if self._client is None:
            self._client = anthropic.AsyncAnthropic(
                api_key=self._api_key,
                timeout=self._timeout,
                max_retries=0,
            )
        return self._client

    async def stream(
        self,
        system: str,
        prompt: str,
        model: str,
        temperature: float,
    ) -> AsyncIterator[str]:
        async with self.client.messages.stream(
            model=model,
            max_tokens=self._max_tokens,
            system=system,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
        ) as stream:
            async for text in stream.text_stream:
                yield text


class ModelRouter:
    """
    Dispatches to a provider by model id.

    claude-* models go to Anthropic, gpt-* models to OpenAI. Unknown ids
    fall back to the default model.
    """

    def __init__(
        self,
        anthropic_judge: Optional[JudgeClient] = None,
        openai_judge: Optional[JudgeClient] = None,
        default_model: str = JUDGE_DEFAULT_MODEL,
    ):
        self._providers: Dict[str, JudgeClient] = {
            "claude-": anthropic_judge or AnthropicJudge(),
            "gpt-": openai_judge or OpenAIJudge(),
        }
        self.default_model = default_model

    def resolve(self, model: str):
        for prefix, judge in self._providers.items():
            if model.startswith(prefix):
                return judge, model
        if model != self.default_model:
            logger.warning("Unknown judge model %r, falling back to %s", model, self.default_model)
            return self.resolve(self.default_model)
        raise ValueError(f"No judge provider for model '{model}'")

    def stream(
        self,
        system: str,
        prompt: str,
        model: str,
        temperature: float,
    ) -> AsyncIterator[str]:
        judge, resolved = self.resolve(model)
        return judge.stream(system, prompt, resolved, temperature)
