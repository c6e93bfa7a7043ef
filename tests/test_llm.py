"""Tests for synclife.core.llm — provider selection and routing."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from synclife.core import llm


@pytest.fixture(autouse=True)
def _reset_provider():
    llm._provider_fn = None
    yield
    llm._provider_fn = None


class TestSelectProvider:
    def test_unknown_provider(self):
        with patch("synclife.config.settings.LLM_PROVIDER", "parrot"):
            with pytest.raises(ValueError, match="parrot"):
                llm._select_provider()

    def test_missing_api_key(self):
        with patch("synclife.config.settings.LLM_API_KEY", ""):
            with pytest.raises(llm.LLMUnavailableError):
                llm._select_provider()

    def test_default_model_per_provider(self):
        with patch("synclife.config.settings.LLM_PROVIDER", "OpenAI"), \
             patch("synclife.config.settings.LLM_MODEL", ""):
            fn, model, key = llm._select_provider()
        assert fn is llm._complete_openai
        assert model == "gpt-4o-mini"
        assert key == "fake-llm-key-for-tests"

    def test_model_override(self):
        with patch("synclife.config.settings.LLM_MODEL", "gemini-2.5-pro"):
            _, model, _ = llm._select_provider()
        assert model == "gemini-2.5-pro"


class TestComplete:
    @pytest.mark.asyncio
    async def test_routes_to_selected_provider_once(self):
        provider = AsyncMock(return_value=llm.Completion('{"routines": []}'))
        with patch.object(llm, "_select_provider", return_value=(provider, "m", "k")) as select:
            reply = await llm.complete("sys", "hello", max_tokens=64)
            await llm.complete("sys", "again", grounded=True)
        assert reply.text == '{"routines": []}'
        assert reply.sources == []
        select.assert_called_once()
        provider.assert_awaited_with("k", "m", "sys", "again", 1024, True)


def _gemini_response(text, chunks):
    metadata = SimpleNamespace(grounding_chunks=chunks)
    return SimpleNamespace(text=text, candidates=[SimpleNamespace(grounding_metadata=metadata)])


def _web_chunk(uri, title=""):
    return SimpleNamespace(web=SimpleNamespace(uri=uri, title=title))


class TestGeminiGrounding:
    @pytest.mark.asyncio
    async def test_grounded_call_returns_search_sources(self):
        response = _gemini_response("[]", [
            _web_chunk("https://example.org/habits", "Habits"),
            SimpleNamespace(web=None),
            _web_chunk("https://example.org/habits", "Habits again"),
            _web_chunk("https://example.org/sleep"),
        ])
        model = MagicMock()
        model.generate_content_async = AsyncMock(return_value=response)
        with patch("google.generativeai.configure"), \
             patch("google.generativeai.GenerativeModel", return_value=model):
            reply = await llm._complete_gemini("k", "gemini-2.0-flash", "sys", "goal", 256, True)

        assert reply.text == "[]"
        assert reply.sources == [
            llm.GroundingSource("https://example.org/habits", "Habits"),
            llm.GroundingSource("https://example.org/sleep", ""),
        ]
        assert model.generate_content_async.await_args.kwargs["tools"] == "google_search_retrieval"

    @pytest.mark.asyncio
    async def test_plain_call_uses_json_mode_without_search(self):
        response = _gemini_response('{"routines": []}', [_web_chunk("https://example.org")])
        model = MagicMock()
        model.generate_content_async = AsyncMock(return_value=response)
        with patch("google.generativeai.configure"), \
             patch("google.generativeai.GenerativeModel", return_value=model):
            reply = await llm._complete_gemini("k", "gemini-2.0-flash", "sys", "goal", 256, False)

        assert reply.sources == []
        assert "tools" not in model.generate_content_async.await_args.kwargs

    def test_response_without_candidates(self):
        assert llm._gemini_sources(SimpleNamespace(candidates=[])) == []
        assert llm._gemini_sources(_gemini_response("", None)) == []
