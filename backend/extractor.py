"""Pull a JSON tool-call out of free-form model output."""
import json
import re
from typing import Any, NamedTuple

FENCED_JSON = re.compile(r"```json\s*([\s\S]*?)```", re.IGNORECASE)


class Extraction(NamedTuple):
    payload: Any  # parsed JSON value, or None when nothing usable parsed
    remainder: str


def _reject_constant(name: str):
    raise ValueError(f"non-standard JSON constant: {name}")


def _strict_loads(raw: str) -> Any:
    try:
        return json.loads(raw, parse_constant=_reject_constant)
    except RecursionError as e:
        raise ValueError("JSON nested too deeply") from e


def _is_payload(value: Any) -> bool:
    """null, false, 0 and "" count as nothing; objects and arrays always count."""
    if value is None:
        return False
    if isinstance(value, (bool, int, float, str)):
        return bool(value)
    return True


def _try_parse(raw: str) -> Any:
    try:
        payload = _strict_loads(raw)
    except ValueError:
        return None
    return payload if _is_payload(payload) else None


def extract_tool_call(text: str) -> Extraction:
    """
    Look for a ```json fenced block first, then fall back to the span between
    the first "{" and the last "}". Parsing is strict: any failure means no
    payload and the original text comes back untouched.
    """
    if not text or not isinstance(text, str):
        return Extraction(None, text)

    # Braces inside a fenced block that failed to parse are not rescanned.
    searchable = text
    fenced = FENCED_JSON.search(text)
    if fenced:
        payload = _try_parse(fenced.group(1).strip())
        if payload is not None:
            remainder = (text[:fenced.start()] + text[fenced.end():]).strip()
            return Extraction(payload, remainder)
        blank = " " * (fenced.end() - fenced.start())
        searchable = text[:fenced.start()] + blank + text[fenced.end():]

    start = searchable.find("{")
    end = searchable.rfind("}")
    if start != -1 and end > start:
        payload = _try_parse(text[start:end + 1])
        if payload is not None:
            remainder = (text[:start] + text[end + 1:]).strip()
            return Extraction(payload, remainder)

    return Extraction(None, text)
