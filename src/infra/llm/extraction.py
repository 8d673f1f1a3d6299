"""
PrepForge - JSON Extraction.

Locates and decodes the JSON object inside free-form model output.
Models wrap their answer in prose, markdown fences, or both, so location
is an ordered chain of strategies; the first one that finds a candidate wins.
"""

import json
import logging
import re
from collections.abc import Callable
from typing import Any

from src.core.exceptions import MalformedJsonError, NoJsonFoundError

logger = logging.getLogger(__name__)

FRAGMENT_LIMIT = 200

_FENCE = re.compile(r"```(?:json)?[ \t]*\r?\n?(.*?)```", re.DOTALL | re.IGNORECASE)


def find_balanced_spans(text: str) -> list[str]:
    """
    Top-level ``{...}`` spans with balanced braces.

    Braces inside JSON string literals (including escaped quotes) do not
    count. An unterminated trailing span is ignored.
    """
    spans: list[str] = []
    depth = 0
    start = -1
    in_string = False
    escaped = False

    for i, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"' and depth > 0:
            in_string = True
        elif char == "{":
            if depth == 0:
                start = i
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                spans.append(text[start:i + 1])

    return spans


# -----------------------------------------------------------------------------
# Location Strategies
# -----------------------------------------------------------------------------

def from_fenced_block(text: str) -> str | None:
    """Content of the first markdown code fence that holds an object."""
    for match in _FENCE.finditer(text):
        content = match.group(1).strip()
        if content.startswith("{"):
            return content
    return None


def from_single_span(text: str) -> str | None:
    """The balanced span, when there is exactly one."""
    spans = find_balanced_spans(text)
    return spans[0] if len(spans) == 1 else None


def from_longest_span(text: str) -> str | None:
    """The longest balanced span; the first one wins a tie."""
    spans = find_balanced_spans(text)
    if not spans:
        return None
    return max(spans, key=len)


STRATEGIES: tuple[Callable[[str], str | None], ...] = (
    from_fenced_block,
    from_single_span,
    from_longest_span,
)


def locate_json(text: str) -> str:
    """
    Find the JSON object text in a completion.

    Raises:
        NoJsonFoundError: If no strategy finds a candidate
    """
    for strategy in STRATEGIES:
        candidate = strategy(text)
        if candidate is not None:
            logger.debug(f"JSON located by {strategy.__name__}")
            return candidate
    raise NoJsonFoundError(details=f"completion of {len(text)} chars")


def parse_json_object(candidate: str) -> dict[str, Any]:
    """
    Decode a located candidate.

    Raises:
        MalformedJsonError: If it does not parse, nests too deeply,
            or is not an object
    """
    fragment = candidate[:FRAGMENT_LIMIT]
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise MalformedJsonError(e.msg, fragment) from e
    except RecursionError as e:
        raise MalformedJsonError("nesting too deep", fragment) from e
    if not isinstance(data, dict):
        raise MalformedJsonError("expected a JSON object", fragment)
    return data


def extract_json_object(text: str) -> dict[str, Any]:
    """Locate and decode the JSON object in a completion."""
    return parse_json_object(locate_json(text))
