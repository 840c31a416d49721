"""HTTP transport for tasks: POST to the worker service.

Outside local dev each call carries a Google-signed OIDC ID token whose
audience is the worker base URL; the worker verifies it in task_auth.
"""

import os

import requests
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request as GoogleRequest
from google.oauth2.id_token import fetch_id_token

from lodgely.observability.logging import get_logger
from lodgely.observability.redaction import safe_log_context
from lodgely.tasks.client import QueuedTask

logger = get_logger(__name__)

DEFAULT_WORKER_BASE_URL = "http://worker:8000"
DEFAULT_TIMEOUT = 30

# Same value as task_auth.LOCAL_DEV_AUDIENCE
LOCAL_DEV_AUDIENCE = "lodgely-tasks-local"


def _worker_base_url() -> str:
    return os.environ.get("WORKER_BASE_URL", DEFAULT_WORKER_BASE_URL).rstrip("/")


def _fetch_oidc_token(audience: str) -> str | None:
    try:
        return fetch_id_token(GoogleRequest(), audience)
    except GoogleAuthError as e:
        logger.error(
            "failed to fetch OIDC ID token",
            extra={"extra_fields": safe_log_context(audience=audience, error=str(e))},
        )
        return None


def _auth_headers() -> dict[str, str] | None:
    """Credentials for the worker, or None when none can be obtained."""
    if os.environ.get("TASKS_OIDC_AUDIENCE", "") == LOCAL_DEV_AUDIENCE:
        secret = os.environ.get("INTERNAL_TASK_SECRET", "")
        return {"X-Internal-Task-Secret": secret} if secret else {}

    token = _fetch_oidc_token(_worker_base_url())
    if not token:
        return None
    return {"Authorization": f"Bearer {token}"}


def post_task(task: QueuedTask) -> bool:
    """POST ``task.payload`` to the worker. True on a 2xx answer."""
    auth = _auth_headers()
    if auth is None:
        logger.error(
            "task not sent: OIDC token unavailable",
            extra={"extra_fields": safe_log_context(task_id=task.task_id, url_path=task.url_path)},
        )
        return False

    headers = {
        "Content-Type": "application/json",
        "X-Correlation-ID": task.correlation_id or "",
        "X-Task-Id": task.task_id,
        **auth,
    }
    url = f"{_worker_base_url()}{task.url_path}"
    timeout = int(os.environ.get("TASKS_HTTP_TIMEOUT", DEFAULT_TIMEOUT))

    try:
        response = requests.post(url, json=task.payload, headers=headers, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        logger.error(
            "task POST failed",
            extra={"extra_fields": safe_log_context(task_id=task.task_id, url=url, error=str(e))},
        )
        return False

    logger.info(
        "task sent to worker",
        extra={"extra_fields": safe_log_context(task_id=task.task_id, url_path=task.url_path)},
    )
    return True
