"""Session payload serialization.

Turns arbitrary JSON-representable session payloads into the string stored
in the ``data`` column and back.  JSON is the default wire format; YAML is
available for stores shared with tooling that prefers it.

Classes
-------
- PayloadSerializer      — protocol for serializer overrides
- SessionSerializer      — JSON / YAML payload serializer
- MalformedPayloadError  — raised when a stored payload cannot be decoded
"""
from __future__ import annotations

import json
from typing import Any, Literal, Protocol, runtime_checkable

import yaml


class MalformedPayloadError(ValueError):
    """Raised when a stored payload cannot be deserialized."""

    def __init__(self, raw: object, reason: str) -> None:
        self.raw = raw
        self.reason = reason
        preview = repr(raw)
        if len(preview) > 80:
            preview = preview[:77] + "..."
        super().__init__(f"Malformed session payload {preview}: {reason}")


@runtime_checkable
class PayloadSerializer(Protocol):
    """Anything that can turn a payload into a string and back."""

    def serialize(self, payload: Any) -> str:
        ...

    def deserialize(self, raw: str) -> Any:
        ...


class SessionSerializer:
    """Serialize and deserialize session payloads.

    Parameters
    ----------
    format:
        Wire format used by ``serialize``/``deserialize``: ``"json"``
        (default) or ``"yaml"``.
    """

    def __init__(self, format: Literal["json", "yaml"] = "json") -> None:
        if format not in ("json", "yaml"):
            raise ValueError(f"Unsupported payload format {format!r}")
        self.format = format

    # ------------------------------------------------------------------
    # JSON
    # ------------------------------------------------------------------

    def to_json(self, payload: Any) -> str:
        """Serialise ``payload`` to a compact JSON string.

        Raises
        ------
        TypeError
            If ``payload`` contains values JSON cannot represent.
        """
        return json.dumps(payload, separators=(",", ":"), allow_nan=False)

    def from_json(self, raw: str) -> Any:
        """Deserialize a JSON string.

        Raises
        ------
        MalformedPayloadError
            If ``raw`` is not a string or not valid JSON.
        """
        if not isinstance(raw, str):
            raise MalformedPayloadError(raw, f"expected str, got {type(raw).__name__}")
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise MalformedPayloadError(raw, str(exc)) from exc

    # ------------------------------------------------------------------
    # YAML
    # ------------------------------------------------------------------

    def to_yaml(self, payload: Any) -> str:
        """Serialise ``payload`` to a YAML string.

        The payload is passed through JSON first so that both formats accept
        exactly the same set of values.
        """
        normalised = json.loads(self.to_json(payload))
        return yaml.safe_dump(
            normalised, default_flow_style=False, allow_unicode=True, sort_keys=True
        )

    def from_yaml(self, raw: str) -> Any:
        """Deserialize a YAML string.

        Raises
        ------
        MalformedPayloadError
            If ``raw`` is not a string or not valid YAML.
        """
        if not isinstance(raw, str):
            raise MalformedPayloadError(raw, f"expected str, got {type(raw).__name__}")
        try:
            return yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise MalformedPayloadError(raw, str(exc)) from exc

    # ------------------------------------------------------------------
    # Format dispatch
    # ------------------------------------------------------------------

    def serialize(self, payload: Any) -> str:
        """Serialize ``payload`` using the configured format."""
        if self.format == "yaml":
            return self.to_yaml(payload)
        return self.to_json(payload)

    def deserialize(self, raw: str) -> Any:
        """Deserialize ``raw`` using the configured format."""
        if self.format == "yaml":
            return self.from_yaml(raw)
        return self.from_json(raw)

    def __repr__(self) -> str:
        return f"SessionSerializer(format={self.format!r})"


__all__ = ["MalformedPayloadError", "PayloadSerializer", "SessionSerializer"]
