"""Notification trigger - best-effort messages on lifecycle transitions.

notify() is called only after the state change it reports has committed.
It hands a NotificationTaskV1 to the tasks backend; the worker later calls
deliver_notification(), which talks to the external dispatcher.

Neither step ever raises into its caller: a failed enqueue or delivery is
logged as a NotificationDeliveryFailure and dropped.
"""

from __future__ import annotations

from typing import Any

from lodgely.domain.errors import NotificationDeliveryFailure
from lodgely.infra.notification_dispatcher import get_dispatcher
from lodgely.observability.correlation import get_correlation_id
from lodgely.observability.logging import get_logger
from lodgely.observability.redaction import safe_log_context
from lodgely.tasks.client import TasksClient
from lodgely.tasks.contracts import NotificationKind, NotificationTaskV1

logger = get_logger(__name__)

SEND_PATH = "/tasks/notifications/send"

_TEMPLATES: dict[str, tuple[str, str]] = {
    "reservation_requested": (
        "New reservation request",
        "A guest asked to stay from {check_in} to {check_out} ({nights} nights).",
    ),
    "reservation_approved": (
        "Reservation approved",
        "Your stay from {check_in} to {check_out} has been approved.",
    ),
    "reservation_rejected": (
        "Reservation declined",
        "Your request for {check_in} to {check_out} was declined.",
    ),
}

# Module-level tasks client (singleton)
_tasks_client = TasksClient()


def _get_tasks_client() -> TasksClient:
    """Get tasks client (allows override in tests)."""
    return _tasks_client


def render(kind: str, context: dict[str, Any]) -> tuple[str, str]:
    """Title and body for a notification kind."""
    title, body = _TEMPLATES[kind]
    body = body.format(**context)
    if context.get("response_message"):
        body = f"{body}\n\n{context['response_message']}"
    return title, body


def notify(user_id: str, kind: NotificationKind, context: dict[str, Any]) -> bool:
    """Enqueue a notification for ``user_id``.

    Args:
        user_id: Recipient.
        kind: reservation_requested | reservation_approved | reservation_rejected.
        context: reservation_id, property_id, check_in, check_out, nights and
            optionally response_message.

    Returns:
        True if the task was handed to the tasks backend.
    """
    correlation_id = get_correlation_id() or None
    task_id = f"notify:{kind}:{context.get('reservation_id')}"

    try:
        title, body = render(kind, context)
        task = NotificationTaskV1(
            task_id=task_id,
            user_id=user_id,
            kind=kind,
            title=title,
            body=body,
            metadata={
                "reservation_id": context.get("reservation_id"),
                "property_id": context.get("property_id"),
                "check_in": str(context.get("check_in")),
                "check_out": str(context.get("check_out")),
            },
            correlation_id=correlation_id,
        )
        enqueued = _get_tasks_client().enqueue_http(
            task_id=task_id,
            url_path=SEND_PATH,
            payload=task.to_dict(),
            correlation_id=correlation_id,
        )
    except Exception as exc:
        _log_failure(NotificationDeliveryFailure(str(exc)), task_id=task_id, kind=kind, stage="enqueue")
        return False

    if not enqueued:
        logger.info(
            "notification not enqueued (duplicate or backend refused)",
            extra={"extra_fields": safe_log_context(task_id=task_id, kind=kind)},
        )
    return enqueued


def deliver_notification(task: NotificationTaskV1) -> bool:
    """Send one notification through the dispatcher (worker side).

    Returns:
        True if delivered, False if the failure was logged and dropped.
    """
    try:
        get_dispatcher().send(task.user_id, task.title, task.body, task.metadata)
    except NotificationDeliveryFailure as exc:
        _log_failure(exc, task_id=task.task_id, kind=task.kind, stage="dispatch")
        return False

    logger.info(
        "notification delivered",
        extra={"extra_fields": safe_log_context(task_id=task.task_id, kind=task.kind)},
    )
    return True


def _log_failure(exc: NotificationDeliveryFailure, *, task_id: str, kind: str, stage: str) -> None:
    logger.warning(
        "notification delivery failure",
        extra={
            "extra_fields": safe_log_context(
                code=exc.code,
                task_id=task_id,
                kind=kind,
                stage=stage,
                error=str(exc),
            )
        },
    )
