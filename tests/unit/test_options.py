"""Unit tests for orm_session_store.session.options.StoreOptions."""
from __future__ import annotations

import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from orm_session_store.session.options import (
    DEFAULT_CHECK_PERIOD_MS,
    DEFAULT_LOGGER_NAME,
    StoreOptions,
)
from orm_session_store.session.serializer import SessionSerializer


class TestStoreOptionsDefaults:
    def test_defaults(self) -> None:
        options = StoreOptions()
        assert options.session_model_name == "session"
        assert options.check_period is None
        assert options.ttl is None
        assert options.round_ttl is None
        assert options.db_record_id_is_session_id is False
        assert options.db_record_id_function is None
        assert isinstance(options.serializer, SessionSerializer)
        assert options.merge_mode == "replace"
        assert options.rolling is True
        assert options.enable_concurrent_set_invocations_for_same_session_id is False
        assert options.enable_concurrent_touch_invocations_for_same_session_id is False

    def test_default_check_period_is_two_minutes(self) -> None:
        assert DEFAULT_CHECK_PERIOD_MS == 120_000


class TestStoreOptionsValidation:
    @pytest.mark.parametrize("rounding", [10, 100, 1000])
    def test_accepts_supported_rounding(self, rounding: int) -> None:
        assert StoreOptions(round_ttl=rounding).round_ttl == rounding

    def test_rejects_unsupported_rounding(self) -> None:
        with pytest.raises(ValidationError):
            StoreOptions(round_ttl=50)

    def test_rejects_non_positive_check_period(self) -> None:
        with pytest.raises(ValidationError):
            StoreOptions(check_period=0)

    def test_rejects_negative_ttl(self) -> None:
        with pytest.raises(ValidationError, match="ttl"):
            StoreOptions(ttl=-1)

    def test_accepts_callable_ttl(self) -> None:
        def ttl(options: StoreOptions, session: object, sid: str) -> int:
            return 1

        assert StoreOptions(ttl=ttl).ttl is ttl

    def test_rejects_bad_model_name(self) -> None:
        with pytest.raises(ValidationError, match="identifier"):
            StoreOptions(session_model_name="drop table; --")

    def test_rejects_bad_serializer(self) -> None:
        with pytest.raises(ValidationError, match="serializer"):
            StoreOptions(serializer=object())

    def test_accepts_duck_typed_serializer(self) -> None:
        class Upper:
            def serialize(self, payload: object) -> str:
                return str(payload).upper()

            def deserialize(self, raw: str) -> object:
                return raw.lower()

        serializer = Upper()
        assert StoreOptions(serializer=serializer).serializer is serializer

    def test_rejects_bad_merge_mode(self) -> None:
        with pytest.raises(ValidationError):
            StoreOptions(merge_mode="patch")

    def test_rejects_bad_logger(self) -> None:
        with pytest.raises(ValidationError, match="logger"):
            StoreOptions(logger="stdout")


class TestResolveLogger:
    def test_default_is_package_logger(self) -> None:
        assert StoreOptions().resolve_logger().name == DEFAULT_LOGGER_NAME

    def test_injected_logger_is_used(self) -> None:
        custom = logging.getLogger("tests.custom")
        assert StoreOptions(logger=custom).resolve_logger() is custom

    def test_false_silences(self) -> None:
        silent = StoreOptions(logger=False).resolve_logger()
        assert silent.disabled is True
        assert silent.propagate is False


class TestFromYaml:
    def test_loads_plain_options(self, tmp_path: Path) -> None:
        path = tmp_path / "store.yaml"
        path.write_text(
            "session_model_name: web_sessions\n"
            "check_period: 600000\n"
            "ttl: 3600000\n"
            "round_ttl: 1000\n"
            "db_record_id_is_session_id: true\n",
            encoding="utf-8",
        )
        options = StoreOptions.from_yaml(path)
        assert options.session_model_name == "web_sessions"
        assert options.check_period == 600_000
        assert options.ttl == 3_600_000
        assert options.round_ttl == 1000
        assert options.db_record_id_is_session_id is True

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert StoreOptions.from_yaml(path).session_model_name == "session"

    def test_non_mapping_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="mapping"):
            StoreOptions.from_yaml(path)
