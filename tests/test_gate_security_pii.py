"""Tests for the security/PII gate script."""

import importlib.util
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
GATE_PATH = ROOT / "scripts" / "gate_security_pii.py"


@pytest.fixture(scope="module")
def gate():
    spec = importlib.util.spec_from_file_location("gate_security_pii", GATE_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_print_flagged(gate):
    errors = gate.check_source("def f():\n    print('hi')\n", "m.py")
    assert errors == ["m.py:2: print() not allowed in runtime code"]


def test_logger_with_contact_phone_flagged(gate):
    source = 'logger.info("created", extra={"phone": request.contact_phone})\n'
    errors = gate.check_source(source, "m.py")
    assert any("contact_phone" in e for e in errors)


def test_logger_through_safe_log_context_ok(gate):
    source = (
        'logger.info("created", extra={"extra_fields": '
        "safe_log_context(contact_phone=request.contact_phone)})\n"
    )
    assert gate.check_source(source, "m.py") == []


def test_logger_without_sensitive_data_ok(gate):
    assert gate.check_source('logger.warning("approval lock contention")\n', "m.py") == []


def test_other_objects_not_treated_as_logger(gate):
    assert gate.check_source("audit.info(payload)\n", "m.py") == []


def test_syntax_error_reported(gate):
    errors = gate.check_source("def (:\n", "broken.py")
    assert len(errors) == 1
    assert "cannot parse" in errors[0]


def test_main_fails_on_violation(gate, tmp_path, capsys):
    (tmp_path / "bad.py").write_text("print(1)\n")
    assert gate.main([str(tmp_path)]) == 1
    assert "PII gate FAILED" in capsys.readouterr().err


def test_main_missing_dir(gate, tmp_path):
    assert gate.main([str(tmp_path / "nope")]) == 1


def test_runtime_code_passes(gate):
    assert gate.main([str(ROOT / "src" / "lodgely")]) == 0
