"""Tests for JSON parsing utilities and AgentSDKClient."""

import pytest
from unittest.mock import patch

from claude_agent_sdk import ResultMessage, AssistantMessage, TextBlock


def _make_result_message(result_text: str) -> ResultMessage:
    """Helper to create a ResultMessage with required fields."""
    return ResultMessage(
        subtype="result",
        duration_ms=100,
        duration_api_ms=80,
        is_error=False,
        num_turns=1,
        session_id="test-session",
        total_cost_usd=0.001,
        usage={"input_tokens": 10, "output_tokens": 20},
        result=result_text,
        structured_output=None,
    )


def _make_assistant_message(text: str) -> AssistantMessage:
    """Helper to create an AssistantMessage with a text block."""
    return AssistantMessage(
        content=[TextBlock(text=text)],
        model="claude-sonnet-4-6",
        parent_tool_use_id=None,
        error=None,
    )


def _patched_query(*messages):
    async def mock_query(*args, **kwargs):
        for m in messages:
            yield m
    return mock_query


class TestParseJsonResponse:
    def test_direct_json(self):
        from tools.llm_client import parse_json_response
        result = parse_json_response('{"key": "value", "num": 42}')
        assert result == {"key": "value", "num": 42}

    def test_markdown_code_fence_with_lang(self):
        from tools.llm_client import parse_json_response
        text = '```json\n{"key": "value"}\n```'
        assert parse_json_response(text) == {"key": "value"}

    def test_json_embedded_in_prose(self):
        from tools.llm_client import parse_json_response
        text = 'Hier ist die Entscheidung: {"needsClarification": true, "questions": []} Ende.'
        result = parse_json_response(text)
        assert result["needsClarification"] is True

    def test_invalid_raises_value_error(self):
        from tools.llm_client import parse_json_response
        with pytest.raises(ValueError, match="Failed to parse"):
            parse_json_response("Das ist kein JSON")

    def test_json_array_is_wrapped(self):
        from tools.llm_client import parse_json_response
        assert parse_json_response('[1, 2, 3]') == {"items": [1, 2, 3]}

    def test_unescaped_newline_in_string(self):
        from tools.llm_client import parse_json_response
        result = parse_json_response('{"text": "Zeile 1\nZeile 2"}')
        assert result["text"] == "Zeile 1\nZeile 2"


class TestRenderMessages:
    def test_renders_text_and_document_url(self):
        from tools.agent_sdk_client import render_messages
        messages = [
            {"role": "user", "content": [
                {"type": "text", "text": "Frage"},
                {"type": "document_url", "document_url": "https://files.example/a.pdf"},
            ]},
            {"role": "user", "content": "Noch etwas"},
        ]
        rendered = render_messages(messages)
        assert "Frage" in rendered
        assert "Dokument: https://files.example/a.pdf" in rendered
        assert rendered.endswith("Noch etwas")

    def test_binary_attachment_rendered_by_name(self, file_attachment):
        from tools.agent_sdk_client import render_block
        text = render_block(file_attachment.to_block())
        assert "haushalt.pdf" in text
        assert "base64" not in text

    def test_text_attachment_inlined(self):
        import base64
        from tools.agent_sdk_client import render_block
        block = {"type": "document", "source": {
            "type": "base64",
            "media_type": "text/plain",
            "name": "notiz.txt",
            "data": base64.b64encode("Radwege für alle".encode("utf-8")).decode("ascii"),
        }}
        assert render_block(block, strict=True) == "Dokument: notiz.txt\nRadwege für alle"

    def test_text_data_uri_inlined(self):
        import base64
        from tools.agent_sdk_client import render_block
        data = base64.b64encode(b"Haushalt 2027").decode("ascii")
        block = {"type": "document_url", "document_url": f"data:text/markdown;base64,{data}"}
        assert render_block(block).endswith("Haushalt 2027")

    def test_strict_rejects_binary_attachment(self, file_attachment):
        from config.exceptions import LLMError
        from tools.agent_sdk_client import render_block
        with pytest.raises(LLMError, match="haushalt.pdf"):
            render_block(file_attachment.to_block(), strict=True)


class TestAgentSDKClient:
    @pytest.mark.asyncio
    async def test_chat_returns_result_text(self):
        """Test that chat() returns the result from query()."""
        with patch("tools.agent_sdk_client.query", _patched_query(_make_result_message("Hallo"))):
            from tools.agent_sdk_client import AgentSDKClient
            client = AgentSDKClient()
            result = await client.chat("system prompt", "user prompt")
            assert result == "Hallo"
            assert client.total_calls == 1

    @pytest.mark.asyncio
    async def test_chat_raises_llm_error_on_exception(self):
        """Test that chat() wraps exceptions in LLMError."""
        from config.exceptions import LLMError

        async def mock_query(*args, **kwargs):
            raise RuntimeError("Connection failed")
            yield  # Make it an async generator

        with patch("tools.agent_sdk_client.query", mock_query):
            from tools.agent_sdk_client import AgentSDKClient
            client = AgentSDKClient()
            with pytest.raises(LLMError, match="Connection failed"):
                await client.chat("system", "user")

    @pytest.mark.asyncio
    async def test_chat_fallback_to_assistant_message(self):
        """Test that chat() falls back to AssistantMessage content when no ResultMessage."""
        with patch("tools.agent_sdk_client.query", _patched_query(_make_assistant_message("Fallback text"))):
            from tools.agent_sdk_client import AgentSDKClient
            client = AgentSDKClient()
            assert await client.chat("system", "user") == "Fallback text"

    @pytest.mark.asyncio
    async def test_generate_returns_text_response(self):
        from tools.generation import GenerationRequest
        with patch("tools.agent_sdk_client.query", _patched_query(_make_result_message("Ein Plan."))):
            from tools.agent_sdk_client import AgentSDKClient
            client = AgentSDKClient()
            response = await client.generate(GenerationRequest(
                request_type="pr_plan_generation",
                system="Rolle",
                messages=[{"role": "user", "content": [{"type": "text", "text": "Thema"}]}],
            ))
            assert response.text == "Ein Plan."
            assert response.tool_calls == []
            assert response.metadata["request_type"] == "pr_plan_generation"

    @pytest.mark.asyncio
    async def test_generate_parses_tool_json(self):
        from tools.generation import GenerationRequest
        reply = _make_result_message('{"needsClarification": false, "questions": []}')
        with patch("tools.agent_sdk_client.query", _patched_query(reply)):
            from tools.agent_sdk_client import AgentSDKClient
            client = AgentSDKClient()
            response = await client.generate(GenerationRequest(
                request_type="plan_question_generation",
                system="Rolle",
                messages=[{"role": "user", "content": "Plan"}],
                tools=[{"name": "decide_clarification", "input_schema": {"type": "object"}}],
            ))
            assert response.tool_calls == [
                {"name": "decide_clarification", "input": {"needsClarification": False, "questions": []}}
            ]

    @pytest.mark.asyncio
    async def test_generate_keeps_text_when_tool_json_missing(self):
        from tools.generation import GenerationRequest
        with patch("tools.agent_sdk_client.query", _patched_query(_make_result_message("kein json"))):
            from tools.agent_sdk_client import AgentSDKClient
            client = AgentSDKClient()
            response = await client.generate(GenerationRequest(
                request_type="plan_question_generation",
                system="Rolle",
                messages=[],
                tools=[{"name": "decide_clarification"}],
            ))
            assert response.tool_calls == []
            assert response.text == "kein json"

    def test_get_usage_summary(self):
        """Test that usage summary returns total_calls."""
        from tools.agent_sdk_client import AgentSDKClient
        client = AgentSDKClient()
        client.total_calls = 5
        assert client.get_usage_summary()["total_calls"] == 5
