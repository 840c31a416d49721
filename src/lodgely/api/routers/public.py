"""Public-facing routes (APP_ROLE=public)."""

from fastapi import APIRouter

from lodgely.api.routes import properties, reservation_requests

router = APIRouter()


@router.get("/health")
def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


router.include_router(properties.router)
router.include_router(reservation_requests.router)
