"""
Repair of a JSON candidate that failed strict parsing.

The usual cause is a truncated stream: the model stopped (or was cut off)
in the middle of a string or array. The repair walks backward from the offset
reported by the parser to the nearest point where the document can be cut
cleanly, drops everything after it, and closes whatever is still open.
"""

from __future__ import annotations
import enum
import json
import logging
import re
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# Error classes produced by truncation or stray tokens; anything else goes straight to fallback
REPAIRABLE_ERRORS = (
    "Unterminated string",
    "Expecting",
    "Invalid control character",
    "Invalid \\escape",
)

# Coarse cut used when the backward scan finds nothing
COARSE_BACKOFF = 100

_TRAILING_COMMA = re.compile(r",\s*$")
_CLOSERS = {"{": "}", "[": "]"}


class ScanState(enum.Enum):
    IN_STRING = "in_string"
    OUT_OF_STRING = "out_of_string"

    def toggled(self) -> "ScanState":
        return ScanState.OUT_OF_STRING if self is ScanState.IN_STRING else ScanState.IN_STRING


def is_repairable(error: json.JSONDecodeError) -> bool:
    return error.msg.startswith(REPAIRABLE_ERRORS)


def _is_escaped(text: str, index: int) -> bool:
    backslashes = 0
    i = index - 1
    while i >= 0 and text[i] == "\\":
        backslashes += 1
        i -= 1
    return backslashes % 2 == 1


def string_state_at(text: str, offset: int) -> ScanState:
    """State just before ``offset`` when reading ``text`` from the start."""
    state = ScanState.OUT_OF_STRING
    for i in range(min(offset, len(text))):
        if text[i] == '"' and not _is_escaped(text, i):
            state = state.toggled()
    return state


def find_safe_truncation(text: str, offset: int) -> Optional[int]:
    """
    Scan backward from ``offset`` for the nearest clean cut point.

    Closers seen while walking back raise the depth (we are entering a
    complete nested value) and openers lower it. A comma or opener outside
    any string at depth zero or above the starting level is safe: the prefix
    up to a comma ends with a complete value, and the prefix through an
    opener can be closed as an empty container.

    Returns the index to cut at (exclusive), or None.
    """
    offset = min(offset, len(text))
    state = string_state_at(text, offset)
    depth = 0
    for i in range(offset - 1, -1, -1):
        char = text[i]
        if char == '"' and not _is_escaped(text, i):
            state = state.toggled()
            continue
        if state is ScanState.IN_STRING:
            continue
        if char in "}]":
            depth += 1
        elif char in "{[":
            depth -= 1
        if depth <= 0 and char in ",{[":
            return i if char == "," else i + 1
    return None


def _coarse_truncation(text: str, offset: int) -> int:
    start = max(0, offset - COARSE_BACKOFF)
    for i in range(min(start, len(text) - 1), -1, -1):
        if text[i] == ",":
            return i
        if text[i] == "{":
            return i + 1
    return start


def unmatched_openers(text: str) -> List[str]:
    """Openers (outside strings) still waiting for their closer, outermost first."""
    stack: List[str] = []
    state = ScanState.OUT_OF_STRING
    for i, char in enumerate(text):
        if char == '"' and not _is_escaped(text, i):
            state = state.toggled()
        elif state is ScanState.OUT_OF_STRING:
            if char in _CLOSERS:
                stack.append(char)
            elif char in "}]" and stack and _CLOSERS[stack[-1]] == char:
                stack.pop()
    return stack


def close_structure(prefix: str) -> str:
    prefix = _TRAILING_COMMA.sub("", prefix.rstrip())
    return prefix + "".join(_CLOSERS[opener] for opener in reversed(unmatched_openers(prefix)))


def repair_truncated_json(candidate: str, offset: int) -> str:
    """Cut ``candidate`` before the failure at ``offset`` and close the remaining structure."""
    cut = find_safe_truncation(candidate, offset)
    if cut is None:
        cut = _coarse_truncation(candidate, offset)
        logger.info("No safe truncation point before offset %d, cutting at %d", offset, cut)
    else:
        logger.info("Safe truncation at %d (parse error at %d)", cut, offset)
    return close_structure(candidate[:cut])


def recover_after_parse_failure(candidate: str, error: json.JSONDecodeError) -> Optional[Dict[str, Any]]:
    """One repair pass; returns the parsed object or None when it still does not parse."""
    if not is_repairable(error):
        logger.warning("Parse error not repairable (%s), skipping structural repair", error.msg)
        return None
    logger.info("Attempting repair of parse error: %s", error)
    repaired = repair_truncated_json(candidate, error.pos)
    try:
        data = json.loads(repaired)
    except (ValueError, RecursionError) as second_error:
        logger.warning("Repaired JSON also failed to parse: %s", second_error)
        return None
    if not isinstance(data, dict):
        return None
    return data
