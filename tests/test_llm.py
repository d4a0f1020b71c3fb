"""Tests for the OpenAI-compatible LLM client."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from openai import OpenAIError

from docdedup.embedding.llm import LLMClient, LLMError


def completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class TestClientConstruction:
    def test_missing_api_key(self, monkeypatch) -> None:
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with pytest.raises(LLMError, match="API key"):
            LLMClient().send("system", "user")

    def test_api_key_from_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "env-key")
        assert LLMClient().api_key == "env-key"

    @pytest.mark.parametrize("provider", ["azure", "custom"])
    def test_endpoint_required(self, provider: str) -> None:
        with pytest.raises(LLMError, match="endpoint"):
            LLMClient(provider=provider, api_key="k").send("system", "user")

    def test_unsupported_provider(self) -> None:
        with pytest.raises(LLMError, match="Unsupported"):
            LLMClient(provider="bard", api_key="k").send("system", "user")  # type: ignore[arg-type]

    @patch("docdedup.embedding.llm.OpenAI")
    def test_custom_endpoint_is_base_url(self, mock_openai: MagicMock) -> None:
        mock_openai.return_value.chat.completions.create.return_value = completion("ok")
        client = LLMClient(provider="custom", api_key="k", endpoint="http://localhost:1234/v1")

        client.send("system", "user")

        kwargs = mock_openai.call_args.kwargs
        assert kwargs["base_url"] == "http://localhost:1234/v1"
        assert kwargs["max_retries"] == 0


    @pytest.mark.parametrize(
        ("provider", "base_url"),
        [
            ("zhipu", "https://open.bigmodel.cn/api/paas/v4/"),
            ("qwen", "https://dashscope.aliyuncs.com/compatible-mode/v1"),
        ],
    )
    @patch("docdedup.embedding.llm.OpenAI")
    def test_preset_provider_endpoints(
        self, mock_openai: MagicMock, provider: str, base_url: str
    ) -> None:
        mock_openai.return_value.chat.completions.create.return_value = completion("ok")

        LLMClient(provider=provider, api_key="k").send("system", "user")

        assert mock_openai.call_args.kwargs["base_url"] == base_url

    @patch("docdedup.embedding.llm.OpenAI")
    def test_explicit_endpoint_overrides_preset(self, mock_openai: MagicMock) -> None:
        mock_openai.return_value.chat.completions.create.return_value = completion("ok")

        LLMClient(provider="qwen", api_key="k", endpoint="http://proxy/v1").send("s", "u")

        assert mock_openai.call_args.kwargs["base_url"] == "http://proxy/v1"

    def test_openai_uses_default_base_url(self) -> None:
        assert LLMClient(api_key="k").endpoint is None


class TestSend:
    @patch("docdedup.embedding.llm.OpenAI")
    def test_returns_content(self, mock_openai: MagicMock) -> None:
        create = mock_openai.return_value.chat.completions.create
        create.return_value = completion("85")

        reply = LLMClient(api_key="k", model="m", temperature=0.2).send("sys", "usr")

        assert reply == "85"
        kwargs = create.call_args.kwargs
        assert kwargs["model"] == "m"
        assert kwargs["temperature"] == 0.2
        assert kwargs["messages"] == [
            {"role": "system", "content": "sys"},
            {"role": "user", "content": "usr"},
        ]

    @patch("docdedup.embedding.llm.OpenAI")
    def test_client_is_reused(self, mock_openai: MagicMock) -> None:
        mock_openai.return_value.chat.completions.create.return_value = completion("x")
        client = LLMClient(api_key="k")
        client.send("a", "b")
        client.send("a", "b")
        assert mock_openai.call_count == 1

    @patch("docdedup.embedding.llm.OpenAI")
    def test_api_error_wrapped(self, mock_openai: MagicMock) -> None:
        mock_openai.return_value.chat.completions.create.side_effect = OpenAIError("rate limit")
        with pytest.raises(LLMError, match="rate limit"):
            LLMClient(api_key="k").send("a", "b")

    @pytest.mark.parametrize("content", [None, ""])
    @patch("docdedup.embedding.llm.OpenAI")
    def test_empty_content(self, mock_openai: MagicMock, content) -> None:
        mock_openai.return_value.chat.completions.create.return_value = completion(content)
        with pytest.raises(LLMError, match="No content"):
            LLMClient(api_key="k").send("a", "b")


class TestConnection:
    @patch("docdedup.embedding.llm.OpenAI")
    def test_hello(self, mock_openai: MagicMock) -> None:
        mock_openai.return_value.chat.completions.create.return_value = completion("Hello!")
        assert LLMClient(api_key="k").test_connection() is True

    @patch("docdedup.embedding.llm.OpenAI")
    def test_unexpected_reply(self, mock_openai: MagicMock) -> None:
        mock_openai.return_value.chat.completions.create.return_value = completion("Bonjour")
        assert LLMClient(api_key="k").test_connection() is False

    def test_failure(self, monkeypatch) -> None:
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        assert LLMClient().test_connection() is False
