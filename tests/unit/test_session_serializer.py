"""Unit tests for orm_session_store.session.serializer.

Tests cover JSON and YAML round-trips, malformed input handling and the
serialize/deserialize dispatch helpers.
"""
from __future__ import annotations

import json

import pytest

from orm_session_store.session.serializer import (
    MalformedPayloadError,
    PayloadSerializer,
    SessionSerializer,
)


_PAYLOADS: list[object] = [
    {"user": "alice", "cookie": {"max_age": 60_000, "secure": True}},
    {"cart": [{"sku": "A-1", "qty": 2}, {"sku": "B-7", "qty": 1}], "total": 12.5},
    ["a", 1, None, False],
    "plain string",
    42,
    None,
    {"nested": {"deeper": {"deepest": [1, [2, [3]]]}}},
    {"unicode": "naïve café ✓"},
]


# ---------------------------------------------------------------------------
# MalformedPayloadError
# ---------------------------------------------------------------------------


class TestMalformedPayloadError:
    def test_is_value_error(self) -> None:
        assert issubclass(MalformedPayloadError, ValueError)

    def test_keeps_raw_and_reason(self) -> None:
        err = MalformedPayloadError("{oops", "bad json")
        assert err.raw == "{oops"
        assert err.reason == "bad json"
        assert "bad json" in str(err)

    def test_long_raw_is_truncated_in_message(self) -> None:
        err = MalformedPayloadError("x" * 500, "bad")
        assert len(str(err)) < 200


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------


class TestSessionSerializerJSON:
    @pytest.mark.parametrize("payload", _PAYLOADS)
    def test_round_trip(self, payload: object) -> None:
        serializer = SessionSerializer()
        assert serializer.deserialize(serializer.serialize(payload)) == payload

    def test_output_is_compact_json(self) -> None:
        raw = SessionSerializer().to_json({"a": 1, "b": [1, 2]})
        assert raw == '{"a":1,"b":[1,2]}'
        assert json.loads(raw) == {"a": 1, "b": [1, 2]}

    def test_invalid_json_raises_malformed(self) -> None:
        with pytest.raises(MalformedPayloadError):
            SessionSerializer().deserialize("not json")

    def test_non_string_raises_malformed(self) -> None:
        with pytest.raises(MalformedPayloadError, match="expected str"):
            SessionSerializer().from_json(b"{}")  # type: ignore[arg-type]

    def test_unserializable_payload_raises_type_error(self) -> None:
        with pytest.raises(TypeError):
            SessionSerializer().serialize({"when": object()})


# ---------------------------------------------------------------------------
# YAML
# ---------------------------------------------------------------------------


class TestSessionSerializerYAML:
    @pytest.mark.parametrize("payload", _PAYLOADS)
    def test_round_trip(self, payload: object) -> None:
        serializer = SessionSerializer(format="yaml")
        assert serializer.deserialize(serializer.serialize(payload)) == payload

    def test_invalid_yaml_raises_malformed(self) -> None:
        with pytest.raises(MalformedPayloadError):
            SessionSerializer(format="yaml").deserialize("key: [unclosed")

    def test_yaml_rejects_what_json_rejects(self) -> None:
        with pytest.raises(TypeError):
            SessionSerializer(format="yaml").serialize({"s": {1, 2}})


# ---------------------------------------------------------------------------
# Construction / protocol
# ---------------------------------------------------------------------------


class TestSessionSerializerConstruction:
    def test_default_format_is_json(self) -> None:
        assert SessionSerializer().format == "json"

    def test_unknown_format_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unsupported"):
            SessionSerializer(format="xml")  # type: ignore[arg-type]

    def test_satisfies_protocol(self) -> None:
        assert isinstance(SessionSerializer(), PayloadSerializer)

    def test_repr(self) -> None:
        assert "yaml" in repr(SessionSerializer(format="yaml"))
