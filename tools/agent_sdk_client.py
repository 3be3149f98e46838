"""Claude Agent SDK backend for the generation and extraction services."""

import base64
import binascii
import json
import logging
import os
from typing import Optional

from claude_agent_sdk import (
    query,
    ClaudeAgentOptions,
    ResultMessage,
    AssistantMessage,
)

from config.settings import Settings
from config.exceptions import LLMError
from tools.generation import GenerationRequest, GenerationResponse
from tools.llm_client import parse_json_response

logger = logging.getLogger(__name__)

# Allow launching Agent SDK even when running inside a Claude Code session.
# The SDK checks for this env var and refuses to start if set.
os.environ.pop("CLAUDECODE", None)


def _decode_text_attachment(source: dict) -> Optional[str]:
    """Return the text of a base64 ``text/*`` attachment, else None."""
    if not str(source.get("media_type", "")).startswith("text/"):
        return None
    try:
        return base64.b64decode(source["data"]).decode("utf-8", errors="replace")
    except (binascii.Error, ValueError):
        return None


def render_block(block: dict, strict: bool = False) -> str:
    """Render one content block as prompt text.

    The SDK takes a plain prompt string, so hosted documents are referenced
    by URL and text attachments are inlined. Other binary attachments are
    referenced by name, or rejected with LLMError when ``strict`` is set.
    """
    block_type = block.get("type")
    if block_type == "text":
        return block.get("text", "")
    if block_type == "document_url":
        url = block.get("document_url", "")
        if not url.startswith("data:"):
            return f"Dokument: {url}"
        header, _, data = url.partition(",")
        source = {"media_type": header[5:].split(";")[0], "data": data, "name": "Anhang"}
    else:
        source = block.get("source") or {}
    if source.get("url"):
        return f"Dokument: {source['url']}"
    if source.get("text"):
        return source["text"]
    name = source.get("name") or block_type or "Anhang"
    if source.get("data"):
        text = _decode_text_attachment(source)
        if text is not None:
            return f"Dokument: {name}\n{text}"
    media_type = source.get("media_type", "")
    if strict:
        raise LLMError(f"Attachment cannot be passed to the Agent SDK: {name} ({media_type or 'unknown'})")
    return f"[Anhang: {name}{f' ({media_type})' if media_type else ''}]"


def render_messages(messages: list[dict], strict: bool = False) -> str:
    """Flatten assembled messages into a single prompt string."""
    parts = []
    for message in messages:
        content = message.get("content")
        if isinstance(content, str):
            parts.append(content)
        else:
            parts.extend(render_block(b, strict) for b in content or [])
    return "\n\n".join(p for p in parts if p)


def _tool_instructions(tools: list[dict]) -> str:
    """Ask for the first tool's arguments as a JSON object."""
    tool = tools[0]
    schema = json.dumps(tool.get("input_schema", {}), ensure_ascii=False)
    return (
        f"Antworte ausschließlich mit einem JSON-Objekt für das Werkzeug "
        f"\"{tool.get('name', 'tool')}\" gemäß diesem Schema:\n{schema}"
    )


class AgentSDKClient:
    """Claude Agent SDK wrapper implementing GenerationService.

    Uses claude_agent_sdk.query() for all LLM interactions.
    Authentication is handled automatically by Claude Code CLI.
    Sampling options are not configurable through the SDK and are logged only.
    With ``strict_attachments`` a request carrying an attachment the SDK
    cannot read fails with LLMError instead of naming it in the prompt.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        model: Optional[str] = None,
        strict_attachments: bool = False,
    ):
        self.settings = settings or Settings()
        self.model = model or self.settings.llm_model_production
        self.strict_attachments = strict_attachments
        self.total_calls = 0

    async def chat(
        self,
        system_prompt: str,
        user_prompt: str,
        model: Optional[str] = None,
        max_turns: int = 1,
    ) -> str:
        """Send a request and return the text result.

        Raises:
            LLMError: If the query fails.
        """
        model = model or self.model
        self.total_calls += 1

        logger.debug("AgentSDK call: model=%s, max_turns=%d", model, max_turns)

        try:
            result_text = ""
            # Exhaust the generator fully: query() uses anyio cancel scopes
            # internally and must not be left from inside the loop.
            async for message in query(
                prompt=user_prompt,
                options=ClaudeAgentOptions(
                    system_prompt=system_prompt,
                    model=model,
                    max_turns=max_turns,
                ),
            ):
                if isinstance(message, ResultMessage):
                    result_text = message.result or ""
                    logger.debug(
                        "AgentSDK result: %d chars, cost=$%s",
                        len(result_text),
                        message.total_cost_usd,
                    )
                elif isinstance(message, AssistantMessage) and not result_text:
                    parts = [block.text for block in message.content if hasattr(block, "text")]
                    if parts:
                        result_text = "".join(parts)
        except Exception as e:
            raise LLMError(f"Agent SDK query failed: {e}") from e

        if not result_text:
            logger.warning("AgentSDK returned no content")

        return result_text

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        """Run an assembled request through the SDK."""
        prompt = render_messages(request.messages, strict=self.strict_attachments)
        if request.tools:
            prompt = f"{prompt}\n\n{_tool_instructions(request.tools)}"

        logger.debug(
            "AgentSDK generate: type=%s, max_tokens=%d, temperature=%.2f",
            request.request_type,
            request.options.max_tokens,
            request.options.temperature,
        )
        text = await self.chat(request.system, prompt, model=request.options.model)

        tool_calls = []
        if request.tools and text:
            try:
                tool_calls.append({"name": request.tools[0].get("name"), "input": parse_json_response(text)})
            except ValueError:
                logger.warning("AgentSDK tool response was not JSON (type=%s)", request.request_type)

        return GenerationResponse(
            text=text,
            metadata={"model": request.options.model or self.model, "request_type": request.request_type},
            tool_calls=tool_calls,
        )

    def get_usage_summary(self) -> dict:
        """Return call count statistics."""
        return {"total_calls": self.total_calls}
