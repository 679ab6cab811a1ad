# backend/trip_planner/utils/sanitize.py
"""
Input sanitization for every free-text field that ends up inside a prompt.

Bounds the length per field type, strips control characters and collapses
long backtick runs so user text cannot open arbitrary code fences. Suspicious
phrasing is only flagged for security logging; it never blocks a request.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from trip_planner.core.logger import get_logger

log = get_logger("sanitize")
security_log = get_logger("security")


MAX_LENGTHS: Dict[str, int] = {
    "message": 2000,
    "title": 200,
    "address": 500,
    "description": 1000,
    "notes": 1000,
    "region": 100,
    "topic": 200,
    "context": 5000,
    "suggestions": 10000,
    "generic": 500,
}

SUSPICIOUS_PATTERNS = [
    re.compile(r"ignore\s+(previous|all|above)\s+instructions", re.IGNORECASE),
    re.compile(r"disregard\s+(previous|all|above)", re.IGNORECASE),
    re.compile(r"forget\s+(everything|all|previous)", re.IGNORECASE),
    re.compile(r"you\s+are\s+now", re.IGNORECASE),
    re.compile(r"new\s+instructions?:", re.IGNORECASE),
    re.compile(r"system\s*prompt", re.IGNORECASE),
    re.compile(r"\[INST\]", re.IGNORECASE),
    re.compile(r"\[/INST\]", re.IGNORECASE),
    re.compile(r"<\|im_start\|>", re.IGNORECASE),
    re.compile(r"<\|im_end\|>", re.IGNORECASE),
    re.compile(r"<<SYS>>", re.IGNORECASE),
    re.compile(r"</SYS>>", re.IGNORECASE),
    re.compile(r"assistant:", re.IGNORECASE),
    re.compile(r"human:", re.IGNORECASE),
    re.compile(r"user:", re.IGNORECASE),
]

# keeps \t (0x09), \n (0x0A) and \r (0x0D)
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_BACKTICK_RUN = re.compile(r"`{3,}")


@dataclass
class SanitizedInput:
    value: str
    has_suspicious_content: bool


def max_length_for(field_type: str) -> int:
    return MAX_LENGTHS.get(field_type, MAX_LENGTHS["generic"])


def sanitize(text: Optional[Any], field_type: str = "generic") -> str:
    """Clean and bound `text` for use inside a prompt. Idempotent."""
    if text is None or text == "":
        return ""

    cleaned = _CONTROL_CHARS.sub("", str(text))
    cleaned = _BACKTICK_RUN.sub("```", cleaned)
    cleaned = cleaned.strip()

    max_length = max_length_for(field_type)
    if len(cleaned) > max_length:
        log.warning(f"Input truncated to {max_length} characters for field type: {field_type}")
        # a cut can leave trailing whitespace behind
        cleaned = cleaned[:max_length].rstrip()

    return cleaned


def contains_suspicious_patterns(text: Optional[str]) -> bool:
    if not text:
        return False
    return any(pattern.search(text) for pattern in SUSPICIOUS_PATTERNS)


def validate_and_sanitize(text: Optional[Any], field_type: str = "generic") -> SanitizedInput:
    value = sanitize(text, field_type)
    suspicious = contains_suspicious_patterns(value)
    if suspicious:
        log.warning(f"Suspicious content detected in {field_type} field")
    return SanitizedInput(value=value, has_suspicious_content=suspicious)


def log_suspicious_input(user_id: Optional[str], handler: str, text: str, field_name: str) -> None:
    security_log.warning(
        "SECURITY: suspicious input detected | user=%s handler=%s field=%s preview=%r",
        user_id or "anonymous",
        handler,
        field_name,
        text[:200],
    )


def sanitize_object(record: Mapping[str, Any], field_types: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """
    Sanitize every string inside `record` using the caller's field→type map.

    Unmapped fields fall back to the generic bound, so a newly added field is
    never left unsanitized (though "generic" may be looser than it should be).
    Nested records reuse the same map. `record` itself is left untouched.
    """
    field_types = field_types or {}
    result: Dict[str, Any] = {}

    for key, value in record.items():
        field_type = field_types.get(key, "generic")

        if isinstance(value, str):
            result[key] = sanitize(value, field_type)
        elif isinstance(value, (list, tuple)):
            result[key] = [_sanitize_item(item, field_type, field_types) for item in value]
        elif isinstance(value, Mapping):
            result[key] = sanitize_object(value, field_types)
        else:
            result[key] = value

    return result


def _sanitize_item(item: Any, field_type: str, field_types: Mapping[str, str]) -> Any:
    if isinstance(item, str):
        return sanitize(item, field_type)
    if isinstance(item, Mapping):
        return sanitize_object(item, field_types)
    return item


def sanitize_fields(
    user_id: Optional[str],
    handler: str,
    fields: Mapping[str, Optional[Any]],
    field_types: Mapping[str, str],
) -> Dict[str, str]:
    """Sanitize a flat set of request fields and log any that look like injection attempts."""
    cleaned: Dict[str, str] = {}
    for name, raw in fields.items():
        result = validate_and_sanitize(raw, field_types.get(name, "generic"))
        if result.has_suspicious_content:
            log_suspicious_input(user_id, handler, result.value, name)
        cleaned[name] = result.value
    return cleaned
