"""Store configuration.

Classes
-------
- StoreOptions  — validated construction options for ``SessionStore``
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from orm_session_store.session.serializer import PayloadSerializer, SessionSerializer

DEFAULT_CHECK_PERIOD_MS: int = 2 * 60 * 1000
DEFAULT_LOGGER_NAME: str = "orm_session_store"

TTLFunction = Callable[..., int]


class StoreOptions(BaseModel):
    """Options altering how a ``SessionStore`` behaves.

    Parameters
    ----------
    session_model_name:
        Name of the sessions model / table.
    check_period:
        Interval in milliseconds between automatic prunes.  ``None``
        disables automatic pruning.
    ttl:
        Time-to-live in milliseconds, or a callable
        ``ttl(options, session, sid) -> int``.  When unset the session
        cookie's ``max_age`` is used, falling back to one day.
    round_ttl:
        Granularity (10, 100 or 1000 ms) that expiration timestamps are
        floored to.
    db_record_id_is_session_id:
        Use the session id itself as the backend record id.
    db_record_id_function:
        Callable deriving the backend record id from the session id.
        Ignored when ``db_record_id_is_session_id`` is set.  When neither is
        set a random token is generated for each new record.
    serializer:
        Payload serializer; any object with ``serialize``/``deserialize``.
    logger:
        Logger used by the store.  ``None`` selects the package logger and
        ``False`` silences the store entirely.
    merge_mode:
        ``"replace"`` stores the payload given to ``set`` as-is;
        ``"merge"`` shallow-merges it over the stored payload.
    rolling:
        When False, ``set`` keeps the expiration of an existing unexpired
        record instead of recomputing it.
    enable_concurrent_set_invocations_for_same_session_id:
        Allow overlapping ``set`` calls for one sid to all reach the backend.
    enable_concurrent_touch_invocations_for_same_session_id:
        Allow overlapping ``touch`` calls for one sid to all reach the backend.
    """

    session_model_name: str = "session"
    check_period: Optional[int] = Field(default=None, gt=0)
    ttl: Union[int, TTLFunction, None] = None
    round_ttl: Optional[Literal[10, 100, 1000]] = None
    db_record_id_is_session_id: bool = False
    db_record_id_function: Optional[Callable[[str], str]] = None
    serializer: Any = Field(default_factory=SessionSerializer)
    logger: Any = None
    merge_mode: Literal["replace", "merge"] = "replace"
    rolling: bool = True
    enable_concurrent_set_invocations_for_same_session_id: bool = False
    enable_concurrent_touch_invocations_for_same_session_id: bool = False

    model_config = {"arbitrary_types_allowed": True}

    @field_validator("session_model_name")
    @classmethod
    def _check_model_name(cls, value: str) -> str:
        if not value.isidentifier():
            raise ValueError(
                f"session_model_name must be a valid identifier, got {value!r}"
            )
        return value

    @field_validator("serializer")
    @classmethod
    def _check_serializer(cls, value: Any) -> Any:
        if not isinstance(value, PayloadSerializer):
            raise ValueError("serializer must provide serialize() and deserialize()")
        return value

    @field_validator("logger")
    @classmethod
    def _check_logger(cls, value: Any) -> Any:
        if value is None or value is False or isinstance(value, logging.Logger):
            return value
        raise ValueError("logger must be a logging.Logger, False or None")

    @model_validator(mode="after")
    def _check_ttl(self) -> "StoreOptions":
        if isinstance(self.ttl, int) and self.ttl < 0:
            raise ValueError("ttl must not be negative")
        return self

    def resolve_logger(self) -> logging.Logger:
        """Return the logger the store should write to."""
        if isinstance(self.logger, logging.Logger):
            return self.logger
        if self.logger is False:
            silent = logging.getLogger(f"{DEFAULT_LOGGER_NAME}.silenced")
            silent.disabled = True
            silent.propagate = False
            return silent
        return logging.getLogger(DEFAULT_LOGGER_NAME)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "StoreOptions":
        """Load options from a YAML mapping.

        Only plain values can be expressed in YAML; callables, loggers and
        serializer overrides must be supplied in code.
        """
        raw = Path(path).read_text(encoding="utf-8")
        data = yaml.safe_load(raw) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Expected a mapping of options in {str(path)!r}")
        return cls.model_validate(data)


__all__ = ["DEFAULT_CHECK_PERIOD_MS", "DEFAULT_LOGGER_NAME", "StoreOptions", "TTLFunction"]
