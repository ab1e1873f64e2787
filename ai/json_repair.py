# ai/json_repair.py
"""
Best-effort repair of model output before JSON parsing

Models wrap JSON in markdown fences, put raw newlines inside string
values and leave trailing commas. None of this touches the transport.
"""
import json
import logging
import re
from typing import Any

from ai.errors import MalformedResponseError

logger = logging.getLogger(__name__)

_TRAILING_COMMA = re.compile(r',\s*([}\]])')


def strip_code_fences(text: str) -> str:
    """Remove a leading ``` / ```json fence and a trailing ``` fence"""
    cleaned = text.strip()
    if cleaned[:7].lower() == '```json':
        cleaned = cleaned[7:]
    elif cleaned.startswith('```'):
        cleaned = cleaned[3:]
    if cleaned.endswith('```'):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def escape_newlines_in_strings(text: str) -> str:
    """Escape raw CR/LF that appear inside JSON string literals"""
    out = []
    in_string = False
    escaped = False
    i = 0
    while i < len(text):
        ch = text[i]
        if escaped:
            out.append(ch)
            escaped = False
        elif ch == '\\' and in_string:
            out.append(ch)
            escaped = True
        elif ch == '"':
            in_string = not in_string
            out.append(ch)
        elif in_string and ch in '\r\n':
            if ch == '\r' and i + 1 < len(text) and text[i + 1] == '\n':
                i += 1
            out.append('\\n')
        else:
            out.append(ch)
        i += 1
    return ''.join(out)


def strip_trailing_commas(text: str) -> str:
    """'{"a": 1,}' -> '{"a": 1}'"""
    return _TRAILING_COMMA.sub(r'\1', text)


def clean_json_response(text: str) -> str:
    """Apply all repairs in order"""
    cleaned = strip_code_fences(text or '')
    cleaned = escape_newlines_in_strings(cleaned)
    return strip_trailing_commas(cleaned)


def parse_json_response(text: str) -> Any:
    """Repair and parse model output, raising MalformedResponseError on failure"""
    cleaned = clean_json_response(text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        context = cleaned[max(0, e.pos - 80):e.pos + 80]
        logger.debug(f"JSON parse failed at pos {e.pos}: {context!r}")
        raise MalformedResponseError(f"Invalid JSON from model: {e.msg}", raw_text=text) from e
