"""Worker/internal routes (APP_ROLE=worker)."""

from fastapi import APIRouter

from lodgely.api.routes import tasks_notifications

router = APIRouter()


@router.get("/tasks/health")
def tasks_health() -> dict:
    """Tasks subsystem health check."""
    return {"status": "ok", "subsystem": "tasks"}


router.include_router(tasks_notifications.router)
