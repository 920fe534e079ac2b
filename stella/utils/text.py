"""Helpers for cleaning up raw model replies."""

import json
import re
from typing import Any

CODE_FENCE_RE = re.compile(r"```(?:sql|json|postgresql)?\s*([\s\S]*?)(?:```|$)", re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    """Return the body of the first fenced block, or the text itself when unfenced."""
    text = (text or "").strip()
    match = CODE_FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return text


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Parse the first JSON object in a reply, tolerating fences and surrounding prose."""
    content = strip_code_fences(text)
    try:
        payload = json.loads(content)
        if isinstance(payload, dict):
            return payload
    except json.JSONDecodeError:
        pass

    start = content.find("{")
    end = content.rfind("}")
    if start == -1 or end <= start:
        return None
    try:
        payload = json.loads(content[start : end + 1])
    except json.JSONDecodeError:
        return None
    return payload if isinstance(payload, dict) else None
