"""Authentication of task calls reaching the worker.

Production: Google-signed OIDC ID token (audience TASKS_OIDC_AUDIENCE,
optionally pinned to TASKS_OIDC_SERVICE_ACCOUNT).
Local dev (TASKS_OIDC_AUDIENCE == LOCAL_DEV_AUDIENCE): X-Internal-Task-Secret
matching INTERNAL_TASK_SECRET is accepted as well.
"""

from __future__ import annotations

import hmac
import os

from fastapi import Request
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from lodgely.observability.logging import get_logger
from lodgely.observability.redaction import safe_log_context

logger = get_logger(__name__)

LOCAL_DEV_AUDIENCE = "lodgely-tasks-local"


def extract_bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    return auth_header[7:]


def verify_task_oidc(token: str) -> bool:
    """Verify a task OIDC token. Fails closed when no audience is configured."""
    if not token:
        return False

    audience = os.environ.get("TASKS_OIDC_AUDIENCE")
    if not audience:
        logger.error(
            "TASKS_OIDC_AUDIENCE not configured - fail closed",
            extra={"extra_fields": safe_log_context(reason="missing_audience_env")},
        )
        return False

    try:
        claims = id_token.verify_oauth2_token(token, google_requests.Request(), audience=audience)
    except ValueError as e:
        logger.warning(
            "OIDC token verification failed",
            extra={"extra_fields": safe_log_context(error=str(e), expected_audience=audience)},
        )
        return False

    expected_email = os.environ.get("TASKS_OIDC_SERVICE_ACCOUNT")
    if expected_email and claims.get("email", "") != expected_email:
        logger.warning(
            "OIDC service account mismatch",
            extra={"extra_fields": safe_log_context(reason="service_account_mismatch")},
        )
        return False

    return True


def verify_task_auth(request: Request) -> bool:
    """True if the task request is authenticated."""
    if os.environ.get("TASKS_OIDC_AUDIENCE", "") == LOCAL_DEV_AUDIENCE:
        internal_secret = os.environ.get("INTERNAL_TASK_SECRET", "")
        request_secret = request.headers.get("X-Internal-Task-Secret", "")
        if internal_secret and hmac.compare_digest(request_secret, internal_secret):
            return True

    token = extract_bearer_token(request)
    if not token:
        logger.warning(
            "task auth failed: missing Bearer token",
            extra={"extra_fields": safe_log_context(reason="missing_bearer_token")},
        )
        return False
    return verify_task_oidc(token)
