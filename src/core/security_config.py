"""Redaction and error-exposure rules."""

from typing import Any


# Matched as case-insensitive substrings of log field names. Raw diffs and
# generated text can carry proprietary code, so they are masked alongside
# credentials.
SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "secret",
        "token",
        "authorization",
        "api_key",
        "apikey",
        "credential",
        "cookie",
        "connection_string",
        "diff",
        "content",
    }
)

REDACTED = "[REDACTED]"

PRODUCTION_ERROR_FIELDS: frozenset[str] = frozenset({"correlation_id", "type"})

DEVELOPMENT_ERROR_FIELDS: frozenset[str] = PRODUCTION_ERROR_FIELDS | {
    "details",
    "traceback",
    "exception_type",
    "validation_errors",
}


def get_allowed_error_fields(environment: str) -> frozenset[str]:
    """Error-body fields the given environment may expose."""
    if environment == "production":
        return PRODUCTION_ERROR_FIELDS
    return DEVELOPMENT_ERROR_FIELDS


def is_sensitive_key(key: str) -> bool:
    key_lower = key.lower()
    return any(sensitive in key_lower for sensitive in SENSITIVE_KEYS)


def redact(value: Any) -> Any:
    """Mask sensitive keys in nested dicts and lists, leaving the rest as is."""
    if isinstance(value, dict):
        return {
            key: REDACTED if is_sensitive_key(str(key)) else redact(item)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [redact(item) for item in value]
    return value
