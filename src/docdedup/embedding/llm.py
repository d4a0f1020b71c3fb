"""Client for OpenAI-compatible chat completion endpoints."""

from __future__ import annotations

import logging
import os
from typing import Literal

from openai import OpenAI, OpenAIError

LOGGER = logging.getLogger(__name__)

Provider = Literal["openai", "azure", "zhipu", "qwen", "custom"]
DEFAULT_LLM_MODEL = "gpt-3.5-turbo"

# OpenAI-compatible endpoints used when no endpoint is given.
PROVIDER_ENDPOINTS = {
    "zhipu": "https://open.bigmodel.cn/api/paas/v4/",
    "qwen": "https://dashscope.aliyuncs.com/compatible-mode/v1",
}


class LLMError(RuntimeError):
    """Raised when the language model cannot be reached or returns nothing."""


class LLMClient:
    """Send a system and user prompt, return the reply text.

    ``azure`` and ``custom`` providers need an endpoint, used as the SDK base
    URL. ``zhipu`` and ``qwen`` fall back to their public compatible-mode
    endpoints. Requests are never retried.
    """

    def __init__(
        self,
        *,
        provider: Provider = "openai",
        api_key: str | None = None,
        endpoint: str | None = None,
        model: str = DEFAULT_LLM_MODEL,
        temperature: float = 0.7,
        timeout: float = 30.0,
    ) -> None:
        self.provider = provider
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        self.endpoint = endpoint or PROVIDER_ENDPOINTS.get(provider)
        self.model = model
        self.temperature = temperature
        self.timeout = timeout
        self._client: OpenAI | None = None

    def _get_client(self) -> OpenAI:
        if not self.api_key:
            raise LLMError("API key is required (set OPENAI_API_KEY or pass --api-key)")
        if self.provider in ("azure", "custom") and not self.endpoint:
            raise LLMError(f"An endpoint is required for provider '{self.provider}'")
        if self.provider not in ("openai", "azure", "zhipu", "qwen", "custom"):
            raise LLMError(f"Unsupported LLM provider: {self.provider}")

        if self._client is None:
            self._client = OpenAI(
                api_key=self.api_key,
                base_url=self.endpoint,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    def send(self, system_prompt: str, user_prompt: str) -> str:
        client = self._get_client()
        try:
            completion = client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self.temperature,
            )
        except OpenAIError as exc:
            raise LLMError(f"LLM API call failed: {exc}") from exc

        content = completion.choices[0].message.content if completion.choices else None
        if not content:
            raise LLMError("No content returned from LLM")
        return content

    def test_connection(self) -> bool:
        try:
            reply = self.send(
                "You are a helpful assistant.",
                "Say 'Hello' if you can understand this message.",
            )
        except LLMError as exc:
            LOGGER.error("LLM connection test failed: %s", exc)
            return False
        return "hello" in reply.lower()
