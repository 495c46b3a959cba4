"""
Prompt-injection denylist and validation error formatting.

This is a phrase denylist, not a classifier: paraphrased injection attempts
are not caught.
"""

import re

INJECTION_PATTERNS = [
    re.compile(r"ignore\s+(all\s+)?previous\s+instructions", re.IGNORECASE),
    re.compile(r"ignore\s+(all\s+)?prior\s+instructions", re.IGNORECASE),
    re.compile(r"disregard\s+(all\s+)?previous", re.IGNORECASE),
    re.compile(r"system\s+prompt", re.IGNORECASE),
    re.compile(r"you\s+are\s+now", re.IGNORECASE),
    re.compile(r"act\s+as\s+if\s+you", re.IGNORECASE),
    re.compile(r"pretend\s+you\s+are", re.IGNORECASE),
    re.compile(r"override\s+(your|the)\s+(instructions|rules)", re.IGNORECASE),
    re.compile(r"reveal\s+(your|the)\s+(system|initial)\s+prompt", re.IGNORECASE),
    re.compile(r"what\s+(is|are)\s+your\s+(system|initial)\s+(prompt|instructions)", re.IGNORECASE),
]


def contains_injection(text: str) -> bool:
    return any(pattern.search(text) for pattern in INJECTION_PATTERNS)


def ensure_no_injection(value: str, field_name: str) -> str:
    if contains_injection(value):
        raise ValueError(f"{field_name} contains disallowed content.")
    return value


def format_validation_errors(errors: list[dict]) -> str:
    """Turn pydantic error dicts into `field.path: message; ...`."""
    parts = []
    for error in errors:
        # Drop the leading "body" segment FastAPI adds to request body errors
        loc = [str(p) for p in error.get("loc", ()) if p != "body"]
        message = error.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        parts.append(f"{'.'.join(loc)}: {message}" if loc else message)
    return "; ".join(parts)
