"""Recovery of JSON payloads from model text output."""

import json
import re
from typing import Iterator

_FENCED_BLOCK_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?\s*```", re.DOTALL)

# strict=False accepts raw newlines and tabs inside string values
_LENIENT_DECODER = json.JSONDecoder(strict=False)


def _candidates(text: str) -> Iterator[str]:
    """Yield substrings that may hold the payload, most specific last."""
    yield text
    for block in _FENCED_BLOCK_RE.findall(text):
        yield block.strip()
    for opening, closing in (("{", "}"), ("[", "]")):
        start, end = text.find(opening), text.rfind(closing)
        if 0 <= start < end:
            yield text[start:end + 1]


def _as_object(value) -> dict:
    # Question lists sometimes come back bare
    if isinstance(value, dict):
        return value
    if isinstance(value, list):
        return {"items": value}
    return {"value": value}


def parse_json_response(text: str) -> dict:
    """Parse the first JSON value found in a model response.

    Accepts plain JSON, fenced ```json blocks and JSON embedded in prose.

    Raises:
        ValueError: If no candidate decodes.
    """
    text = (text or "").strip()
    for candidate in _candidates(text):
        try:
            return _as_object(_LENIENT_DECODER.decode(candidate))
        except json.JSONDecodeError:
            continue
    raise ValueError(f"Failed to parse JSON from model response: {text[:200]}...")
