"""Shared pytest fixtures for the lodgely test suite."""
import sys
sys.dont_write_bytecode = True

import pytest  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_oidc_jwks_cache():
    """Reset the module-level JWKS cache around every test.

    Without this a JWKS cached by one test (with its own RSA key) makes the
    next test's tokens fail with 401.
    """
    import lodgely.api.auth as auth_module

    auth_module._jwks_cache.clear()
    yield
    auth_module._jwks_cache.clear()


@pytest.fixture(autouse=True)
def _reset_notification_tasks():
    """Forget notification tasks recorded by the inline tasks backend."""
    from lodgely.domain import notifications

    notifications._tasks_client.clear()
    yield
    notifications._tasks_client.clear()
