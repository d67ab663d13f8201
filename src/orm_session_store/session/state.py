"""Session row domain model.

Classes
-------
- SessionRecord  — one row of the sessions table as returned by a client
"""
from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, field_validator

from orm_session_store.utils.expiration import current_time_ms, to_epoch_ms


class SessionRecord(BaseModel):
    """A persisted session row.

    Parameters
    ----------
    id:
        Backend record identifier.  Written once when the row is created.
    sid:
        Session identifier exposed to the middleware.  Unique per store.
    data:
        Serialized session payload.
    expires_at:
        Aware UTC datetime after which the session is considered expired.
    """

    id: str
    sid: str
    data: str
    expires_at: datetime

    model_config = {"frozen": True}

    @field_validator("expires_at")
    @classmethod
    def _coerce_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def is_expired(self, now_ms: int | None = None) -> bool:
        """Return True if ``expires_at`` is at or before ``now_ms``.

        Parameters
        ----------
        now_ms:
            Reference time in epoch milliseconds.  Defaults to the current
            wall-clock time.
        """
        if now_ms is None:
            now_ms = current_time_ms()
        return to_epoch_ms(self.expires_at) <= now_ms


__all__ = ["SessionRecord"]
