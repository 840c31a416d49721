#!/usr/bin/env python3
"""Security & PII gate for runtime code under src/.

Fails if:
- print() is called anywhere in src/
- a logger call mentions guest contact data or raw payloads without going
  through safe_log_context / redact_value / redact_string

Usage:
    python scripts/gate_security_pii.py [SRC_DIR]
"""

from __future__ import annotations

import ast
import sys
from pathlib import Path

SENSITIVE_KEYWORDS = (
    "payload",
    "request.json",
    "contact_phone",
    "phone",
    "email",
    "response_message",
)

LOGGER_METHODS = frozenset({"debug", "info", "warning", "error", "critical", "exception"})

REDACTION_CALLS = ("safe_log_context", "redact_value", "redact_string")


def _is_logger_call(node: ast.Call) -> bool:
    func = node.func
    return (
        isinstance(func, ast.Attribute)
        and func.attr in LOGGER_METHODS
        and isinstance(func.value, ast.Name)
        and func.value.id == "logger"
    )


def check_source(source: str, filename: str = "<string>") -> list[str]:
    """Violations found in one module's source."""
    try:
        tree = ast.parse(source, filename=filename)
    except SyntaxError as e:
        return [f"{filename}:{e.lineno}: cannot parse ({e.msg})"]

    errors: list[str] = []
    for node in ast.walk(tree):
        if not isinstance(node, ast.Call):
            continue

        if isinstance(node.func, ast.Name) and node.func.id == "print":
            errors.append(f"{filename}:{node.lineno}: print() not allowed in runtime code")
            continue

        if not _is_logger_call(node):
            continue
        segment = ast.get_source_segment(source, node) or ""
        if any(call in segment for call in REDACTION_CALLS):
            continue
        lowered = segment.lower()
        for keyword in SENSITIVE_KEYWORDS:
            if keyword in lowered:
                errors.append(
                    f"{filename}:{node.lineno}: logger call with '{keyword}' "
                    "must use redaction (safe_log_context/redact_value)"
                )
    return errors


def check_file(filepath: Path) -> list[str]:
    try:
        source = filepath.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        return []
    return check_source(source, str(filepath))


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    src_dir = Path(argv[0]) if argv else Path(__file__).resolve().parent.parent / "src"

    if not src_dir.is_dir():
        sys.stderr.write(f"Error: {src_dir} is not a directory\n")
        return 1

    all_errors: list[str] = []
    for pyfile in sorted(src_dir.rglob("*.py")):
        all_errors.extend(check_file(pyfile))

    if all_errors:
        sys.stderr.write("PII gate FAILED - violations found:\n")
        for err in all_errors:
            sys.stderr.write(f"  {err}\n")
        return 1

    sys.stdout.write("PII gate PASSED\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
