from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from ainews.ai import (
    GeminiProvider,
    MockAIProvider,
    OpenAIProvider,
    create_ai_provider,
    first_success,
    parse_relevance_response,
)
from ainews.ai.llm_provider import parse_bullets
from ainews.errors import ModelsExhaustedError


def completion(text, tokens=42):
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = text
    response.usage.total_tokens = tokens
    return response


class TestParsing:
    def test_structured_reply(self):
        analysis = parse_relevance_response("Score: 85 | Reasoning: Directly about the user's AI interest")

        assert analysis.score == 85
        assert analysis.reasoning == "Directly about the user's AI interest"

    def test_loose_reply_uses_first_number(self):
        analysis = parse_relevance_response("I would rate this 60 out of 100")

        assert analysis.score == 60
        assert analysis.reasoning.endswith("...")

    def test_score_is_clamped(self):
        assert parse_relevance_response("Score: 250 | Reasoning: very").score == 100

    def test_unparseable(self):
        assert parse_relevance_response("no idea") is None
        assert parse_relevance_response("") is None

    def test_bullets(self):
        reply = "- First point\n- Second point\n- Third point"

        assert parse_bullets(reply, 2) == ["First point", "Second point"]


class TestFirstSuccess:
    @pytest.mark.asyncio
    async def test_tries_models_in_order(self):
        tried = []

        async def attempt(model):
            tried.append(model)
            if model == "primary":
                raise RuntimeError("overloaded")
            return f"answer from {model}"

        result = await first_success(["primary", "secondary", "tertiary"], attempt)

        assert result == "answer from secondary"
        assert tried == ["primary", "secondary"]

    @pytest.mark.asyncio
    async def test_all_models_fail(self):
        async def attempt(model):
            raise RuntimeError(f"{model} down")

        with pytest.raises(ModelsExhaustedError) as exc_info:
            await first_success(["a", "b"], attempt)

        assert exc_info.value.models == ["a", "b"]
        assert str(exc_info.value.last_error) == "b down"


class TestOpenAIProvider:
    @pytest.fixture(autouse=True)
    def setup(self):
        self.provider = OpenAIProvider(api_key="test-key", models=["model-a", "model-b"])
        self.provider.client = MagicMock()

    @pytest.mark.asyncio
    async def test_falls_back_to_next_model(self):
        self.provider.client.chat.completions.create = AsyncMock(
            side_effect=[RuntimeError("rate limited"), completion("Score: 70 | Reasoning: Relevant")]
        )

        analysis = await self.provider.analyze_relevance("Title", "Text", ["ai"])

        assert analysis.score == 70
        calls = self.provider.client.chat.completions.create.call_args_list
        assert [c.kwargs["model"] for c in calls] == ["model-a", "model-b"]
        stats = self.provider.get_usage_stats()
        assert stats["api_calls"] == 2
        assert stats["total_tokens"] == 42

    @pytest.mark.asyncio
    async def test_exhausted_models_return_none(self):
        self.provider.client.chat.completions.create = AsyncMock(side_effect=RuntimeError("down"))

        assert await self.provider.analyze_relevance("Title", "Text", ["ai"]) is None
        assert self.provider.get_usage_stats()["failures"] == 1

    @pytest.mark.asyncio
    async def test_summary_bullets(self):
        self.provider.client.chat.completions.create = AsyncMock(
            return_value=completion("- One\n- Two\n- Three")
        )

        bullets = await self.provider.summarize_article("Title", "Body", "Outlet", max_bullets=2)

        assert bullets == ["One", "Two"]

    @pytest.mark.asyncio
    async def test_failed_summary_is_empty(self):
        self.provider.client.chat.completions.create = AsyncMock(side_effect=RuntimeError("down"))

        assert await self.provider.summarize_article("Title", "Body", "Outlet") == []


class TestGeminiProvider:
    @pytest.mark.asyncio
    @patch("ainews.ai.llm_provider.genai.Client")
    async def test_relevance_through_async_client(self, mock_client_class):
        response = MagicMock()
        response.text = "Score: 90 | Reasoning: Matches interests"
        response.usage_metadata.total_token_count = 12
        mock_client_class.return_value.aio.models.generate_content = AsyncMock(return_value=response)

        provider = GeminiProvider(api_key="test-key", models=["gemini-test"])
        analysis = await provider.analyze_relevance("Title", "Text", ["ai"])

        assert analysis.score == 90
        mock_client_class.assert_called_once_with(api_key="test-key")
        assert provider.get_usage_stats()["total_tokens"] == 12

    @pytest.mark.asyncio
    @patch("ainews.ai.llm_provider.genai.Client")
    async def test_empty_response_counts_as_failure(self, mock_client_class):
        response = MagicMock()
        response.text = ""
        response.usage_metadata = None
        mock_client_class.return_value.aio.models.generate_content = AsyncMock(return_value=response)

        provider = GeminiProvider(api_key="test-key", models=["m1", "m2"])

        assert await provider.analyze_relevance("Title", "Text", ["ai"]) is None
        assert provider.get_usage_stats()["api_calls"] == 2

    def test_requires_api_key(self):
        with pytest.raises(ValueError):
            GeminiProvider(api_key="")


class TestCreateAIProvider:
    def test_mock(self):
        assert isinstance(create_ai_provider("mock", None), MockAIProvider)

    def test_none_or_missing_key(self):
        assert create_ai_provider("none", "key") is None
        assert create_ai_provider("gemini", None) is None

    def test_unknown_provider(self):
        assert create_ai_provider("llama", "key") is None

    def test_openai_drops_gemini_model_names(self):
        provider = create_ai_provider("openai", "key", ["gemini-1.5-flash"])

        assert isinstance(provider, OpenAIProvider)
        assert provider.models == ["gpt-4o-mini"]

    @patch("ainews.ai.llm_provider.genai.Client")
    def test_gemini(self, mock_client_class):
        provider = create_ai_provider("gemini", "key", ["gemini-x"])

        assert isinstance(provider, GeminiProvider)
        assert provider.models == ["gemini-x"]
