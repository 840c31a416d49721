"""Notification dispatcher adapter.

The dispatcher (push / e-mail / in-app inbox) is an external service. This
module posts one notification per call to NOTIFICATIONS_DISPATCH_URL and
reports delivery problems as NotificationDeliveryFailure.
"""

from __future__ import annotations

import os
from typing import Any, Protocol

import requests

from lodgely.domain.errors import NotificationDeliveryFailure


class NotificationDispatcher(Protocol):
    def send(self, user_id: str, title: str, body: str, metadata: dict[str, Any]) -> None:
        """Deliver one notification. Raises NotificationDeliveryFailure."""
        ...


class HttpNotificationDispatcher:
    """Dispatcher backed by an HTTP endpoint.

    Configuration (env):
        NOTIFICATIONS_DISPATCH_URL: Endpoint receiving POSTed notifications.
        NOTIFICATIONS_DISPATCH_TOKEN: Optional bearer token.
        NOTIFICATIONS_HTTP_TIMEOUT: Seconds (default 10).
    """

    def __init__(
        self,
        url: str | None = None,
        token: str | None = None,
        timeout: int | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.url = url if url is not None else os.environ.get("NOTIFICATIONS_DISPATCH_URL", "")
        self.token = token if token is not None else os.environ.get("NOTIFICATIONS_DISPATCH_TOKEN", "")
        self.timeout = timeout or int(os.environ.get("NOTIFICATIONS_HTTP_TIMEOUT", "10"))
        self._session = session or requests.Session()

    def send(self, user_id: str, title: str, body: str, metadata: dict[str, Any]) -> None:
        if not self.url:
            raise NotificationDeliveryFailure("NOTIFICATIONS_DISPATCH_URL not configured")

        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = self._session.post(
                self.url,
                json={
                    "user_id": user_id,
                    "title": title,
                    "body": body,
                    "metadata": metadata,
                },
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise NotificationDeliveryFailure(f"Dispatcher request failed: {e}") from e


_dispatcher: NotificationDispatcher | None = None


def get_dispatcher() -> NotificationDispatcher:
    """Module-level dispatcher (allows override in tests via set_dispatcher)."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = HttpNotificationDispatcher()
    return _dispatcher


def set_dispatcher(dispatcher: NotificationDispatcher | None) -> None:
    global _dispatcher
    _dispatcher = dispatcher
