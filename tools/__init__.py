"""Tools package: generation interface, Agent SDK backend and JSON parsing."""

from tools.agent_sdk_client import AgentSDKClient
from tools.generation import (
    GenerationOptions,
    GenerationRequest,
    GenerationResponse,
    GenerationService,
    message_text,
)
from tools.llm_client import parse_json_response

__all__ = [
    "AgentSDKClient",
    "GenerationOptions",
    "GenerationRequest",
    "GenerationResponse",
    "GenerationService",
    "message_text",
    "parse_json_response",
]
