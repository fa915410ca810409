"""Redaction of sensitive fields before persistence or logging."""

import copy
import json
from collections.abc import Iterable
from typing import Any

from src.automation.core.config import get_settings
from src.automation.core.logging import get_logger

logger = get_logger(__name__)


def is_sensitive_key(key: str, patterns: Iterable[str]) -> bool:
    """True if the lower-cased key contains any sensitive pattern."""
    lowered = key.lower()
    return any(pattern.lower() in lowered for pattern in patterns)


def _redact(value: Any, patterns: tuple[str, ...], placeholder: str) -> Any:
    if isinstance(value, dict):
        return {
            k: placeholder
            if isinstance(k, str) and is_sensitive_key(k, patterns)
            else _redact(v, patterns, placeholder)
            for k, v in value.items()
        }
    if isinstance(value, list):
        return [_redact(item, patterns, placeholder) for item in value]
    return value


def sanitize_payload(
    data: Any,
    patterns: Iterable[str] | None = None,
    placeholder: str | None = None,
) -> Any:
    """Return a JSON-safe deep copy of data with sensitive fields redacted.

    Keys are matched case-insensitively by substring, so ``apiKey`` and
    ``refresh_token`` are both redacted. Input that cannot be serialized to
    JSON is replaced with an empty dict.

    Args:
        data: Request payload (dicts, lists and scalars).
        patterns: Substrings marking a key as sensitive. Defaults to settings.
        placeholder: Replacement value. Defaults to settings.

    Returns:
        The sanitized copy. The input is never mutated.
    """
    if data is None:
        return None

    settings = get_settings()
    pattern_tuple = tuple(patterns if patterns is not None else settings.sensitive_field_patterns)
    replacement = placeholder if placeholder is not None else settings.redaction_placeholder

    try:
        # Round-trip through JSON to reject values the store cannot hold
        snapshot = json.loads(json.dumps(copy.deepcopy(data)))
    except (TypeError, ValueError) as e:
        logger.warning("Error sanitizing workflow data", error=str(e))
        return {}

    return _redact(snapshot, pattern_tuple, replacement)
