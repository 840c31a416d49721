"""Log redaction. Every value that reaches a log line goes through here.

Guest contact data is the PII this service handles: phones shared with
the owner, e-mails from the identity provider and free-text messages.
"""

import re
from datetime import date
from decimal import Decimal
from typing import Any

PHONE_RE = re.compile(r"\+?\d[\d\s\-()]{8,}\d")
EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

# Dropped by key, whatever the value looks like
SENSITIVE_KEYS = frozenset({"contact_phone", "phone", "email", "message", "response_message"})

REDACTED = "[REDACTED]"


def redact_string(value: str) -> str:
    return EMAIL_RE.sub(REDACTED, PHONE_RE.sub(REDACTED, value))


def redact_value(value: Any) -> str:
    """String form of ``value`` with PII removed.

    Scalars and dates are kept; strings are scrubbed; containers are
    reduced to their shape; anything else to its type name.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        return redact_string(value)
    if isinstance(value, dict):
        return f"dict(keys={sorted(map(str, value))})"
    if isinstance(value, (list, tuple, set, frozenset)):
        return f"list(len={len(value)})"
    return f"<{type(value).__name__}>"


def safe_log_context(**fields: Any) -> dict[str, str]:
    """``extra_fields`` for a log call: sensitive keys masked, the rest redacted."""
    return {
        key: REDACTED if key in SENSITIVE_KEYS and value else redact_value(value)
        for key, value in fields.items()
    }
