"""Task contracts v1 - internal payload definitions without PII.

Notification tasks travel from the API process to the worker through the
tasks backend. The contract pins the payload shape so both sides agree on
it regardless of backend.
"""

from dataclasses import dataclass, field
from typing import Any, Literal

NotificationKind = Literal[
    "reservation_requested",
    "reservation_approved",
    "reservation_rejected",
]

NOTIFICATION_KINDS: tuple[str, ...] = (
    "reservation_requested",
    "reservation_approved",
    "reservation_rejected",
)


@dataclass(frozen=True)
class NotificationTaskV1:
    """Notification task v1.

    Attributes:
        version: Contract version (always "v1").
        task_id: Unique identifier for idempotency.
        user_id: Recipient user id.
        kind: Notification kind.
        title: Short title for the recipient.
        body: Message body for the recipient.
        metadata: Ids, dates and amounts for deep links (must not contain PII).
        correlation_id: Correlation id of the originating request.
    """

    version: Literal["v1"] = field(default="v1", init=False)
    task_id: str = ""
    user_id: str = ""
    kind: str = ""
    title: str = ""
    body: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)
    correlation_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "task_id": self.task_id,
            "user_id": self.user_id,
            "kind": self.kind,
            "title": self.title,
            "body": self.body,
            "metadata": self.metadata,
            "correlation_id": self.correlation_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NotificationTaskV1":
        """Create from dict.

        Raises:
            ValueError: On unsupported version, unknown kind or missing ids.
        """
        if data.get("version") != "v1":
            raise ValueError(f"Unsupported version: {data.get('version')}")
        if data.get("kind") not in NOTIFICATION_KINDS:
            raise ValueError(f"Unknown notification kind: {data.get('kind')}")
        if not data.get("task_id") or not data.get("user_id"):
            raise ValueError("task_id and user_id are required")
        return cls(
            task_id=data["task_id"],
            user_id=data["user_id"],
            kind=data["kind"],
            title=data.get("title", ""),
            body=data.get("body", ""),
            metadata=data.get("metadata") or {},
            correlation_id=data.get("correlation_id"),
        )
