"""Worker route delivering notification tasks."""

from typing import Any

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from lodgely.api.task_auth import verify_task_auth
from lodgely.domain.notifications import deliver_notification
from lodgely.observability.correlation import correlation_scope, get_correlation_id
from lodgely.observability.logging import get_logger
from lodgely.observability.redaction import safe_log_context
from lodgely.tasks.contracts import NotificationTaskV1

router = APIRouter(prefix="/tasks/notifications", tags=["tasks"])

logger = get_logger(__name__)


@router.post("/send")
async def handle_send(request: Request) -> JSONResponse:
    """Deliver one NotificationTaskV1.

    Always acknowledges a well-formed task with 200: a delivery failure is
    logged by the domain and the task dropped ("dropped"), so the tasks
    backend does not retry into the reservation lifecycle.
    """
    if not verify_task_auth(request):
        logger.warning(
            "task auth failed",
            extra={"extra_fields": safe_log_context(correlationId=get_correlation_id())},
        )
        raise HTTPException(status_code=401, detail="Unauthorized")

    try:
        payload: dict[str, Any] = await request.json()
    except ValueError:
        return JSONResponse(status_code=400, content={"ok": False, "error": "invalid json"})

    try:
        task = NotificationTaskV1.from_dict(payload)
    except ValueError as e:
        logger.warning(
            "invalid notification task",
            extra={"extra_fields": safe_log_context(error=str(e))},
        )
        return JSONResponse(status_code=400, content={"ok": False, "error": "invalid task"})

    with correlation_scope(task.correlation_id or get_correlation_id()):
        delivered = deliver_notification(task)

    return JSONResponse(
        status_code=200,
        content={"ok": True, "status": "delivered" if delivered else "dropped"},
    )
