"""ASGI entrypoint (uvicorn lodgely.api.app:app)."""

from lodgely.api.factory import create_app

app = create_app()
