"""Generation-service interface shared by phase agents and extraction."""

from dataclasses import dataclass, field
from typing import Optional, Protocol, runtime_checkable


@dataclass
class GenerationOptions:
    max_tokens: int = 1000
    temperature: float = 0.6
    top_p: Optional[float] = None
    tool_choice: Optional[str] = None
    model: Optional[str] = None


@dataclass
class GenerationRequest:
    """One request to the model backend.

    ``messages`` are role-tagged blocks as produced by prompt assembly:
    ``{"role": "user", "content": [{"type": "text", "text": ...}, ...]}``.
    """
    request_type: str
    system: str
    messages: list[dict]
    options: GenerationOptions = field(default_factory=GenerationOptions)
    tools: list[dict] = field(default_factory=list)
    use_privacy_mode: bool = False


@dataclass
class GenerationResponse:
    text: str
    metadata: dict = field(default_factory=dict)
    tool_calls: list[dict] = field(default_factory=list)


@runtime_checkable
class GenerationService(Protocol):
    """Opaque model backend. Any failure is raised as an exception."""

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        ...


def message_text(messages: list[dict]) -> str:
    """Flatten the text blocks of role-tagged messages into one string."""
    parts = []
    for message in messages:
        content = message.get("content")
        if isinstance(content, str):
            parts.append(content)
            continue
        for block in content or []:
            if block.get("type") == "text" and block.get("text"):
                parts.append(block["text"])
    return "\n\n".join(parts)
