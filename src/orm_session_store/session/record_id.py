"""Session id to backend record mapping.

The backend record id is derived from the session id by exactly one
strategy, chosen when the store is constructed:

- ``SessionIdStrategy``   — the session id is used as-is
- ``FunctionStrategy``    — a user-supplied deterministic function
- ``RandomTokenStrategy`` — a fresh random token per created record

Functions
---------
- resolve_strategy  — pick the strategy described by ``StoreOptions``
- row_to_session    — decode a ``SessionRecord`` into payload + expiration
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Union
from uuid import uuid4

from orm_session_store.session.serializer import MalformedPayloadError, PayloadSerializer
from orm_session_store.session.state import SessionRecord

if TYPE_CHECKING:
    from orm_session_store.session.options import StoreOptions


@dataclass(frozen=True)
class SessionIdStrategy:
    """Use the session id as the record id."""

    def key_for(self, sid: str) -> str:
        return sid


@dataclass(frozen=True)
class FunctionStrategy:
    """Derive the record id with ``func(sid)``."""

    func: Callable[[str], str]

    def key_for(self, sid: str) -> str:
        key = self.func(sid)
        if not isinstance(key, str) or not key:
            raise ValueError(
                f"db_record_id_function must return a non-empty str, got {key!r}"
            )
        return key


@dataclass(frozen=True)
class RandomTokenStrategy:
    """Generate a collision-resistant random record id."""

    def key_for(self, sid: str) -> str:
        return uuid4().hex


RecordIdStrategy = Union[SessionIdStrategy, FunctionStrategy, RandomTokenStrategy]


def resolve_strategy(options: StoreOptions) -> RecordIdStrategy:
    """Return the record id strategy configured by ``options``."""
    if options.db_record_id_is_session_id:
        return SessionIdStrategy()
    if options.db_record_id_function is not None:
        return FunctionStrategy(options.db_record_id_function)
    return RandomTokenStrategy()


def row_to_session(
    record: SessionRecord, serializer: PayloadSerializer
) -> tuple[Any, datetime]:
    """Decode ``record`` into ``(payload, expires_at)``.

    Raises
    ------
    MalformedPayloadError
        If the stored payload cannot be deserialized.  Value and type errors
        raised by custom serializers are normalised to this error.
    """
    try:
        payload = serializer.deserialize(record.data)
    except MalformedPayloadError:
        raise
    except (ValueError, TypeError) as exc:
        raise MalformedPayloadError(record.data, str(exc)) from exc
    return payload, record.expires_at


__all__ = [
    "FunctionStrategy",
    "RandomTokenStrategy",
    "RecordIdStrategy",
    "SessionIdStrategy",
    "resolve_strategy",
    "row_to_session",
]
