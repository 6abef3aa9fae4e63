from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Ack:
    """Acknowledgment returned to the Socket.IO client callback.

    Serialized as ``{"error": bool, "message": str, "user_id"?: int}``.
    """
    error: bool
    message: str
    user_id: int | None = None

    @classmethod
    def ok(cls, message: str, user_id: int | None = None) -> "Ack":
        return cls(error=False, message=message, user_id=user_id)

    @classmethod
    def fail(cls, message: str) -> "Ack":
        return cls(error=True, message=message)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.error, "message": self.message}
        if self.user_id is not None:
            payload["user_id"] = self.user_id
        return payload
