"""Unit tests for orm_session_store.utils.expiration."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from orm_session_store.session.options import StoreOptions
from orm_session_store.utils.expiration import (
    ONE_DAY_MS,
    create_expiration,
    current_time_ms,
    from_epoch_ms,
    get_ttl,
    to_epoch_ms,
)


# ---------------------------------------------------------------------------
# Clock and conversions
# ---------------------------------------------------------------------------


class TestClock:
    def test_current_time_ms_follows_time_ns(self, clock) -> None:
        assert current_time_ms() == 1_700_000_000_000

    def test_from_epoch_ms_is_utc(self) -> None:
        dt = from_epoch_ms(60_000)
        assert dt == datetime(1970, 1, 1, 0, 1, tzinfo=timezone.utc)

    def test_to_epoch_ms_inverts_from_epoch_ms(self) -> None:
        assert to_epoch_ms(from_epoch_ms(1_700_000_123_456)) == 1_700_000_123_456

    def test_to_epoch_ms_treats_naive_as_utc(self) -> None:
        assert to_epoch_ms(datetime(1970, 1, 1, 0, 0, 1)) == 1000


# ---------------------------------------------------------------------------
# create_expiration
# ---------------------------------------------------------------------------


class TestCreateExpiration:
    def test_adds_shelf_life(self, clock) -> None:
        expires = create_expiration(5_000)
        assert to_epoch_ms(expires) == clock.now_ms + 5_000

    def test_is_aware_utc(self, clock) -> None:
        assert create_expiration(1).tzinfo == timezone.utc

    @pytest.mark.parametrize("rounding", [10, 100, 1000])
    def test_rounding_floors_to_multiple(self, clock, rounding: int) -> None:
        clock.set(1_700_000_000_987)
        expires_ms = to_epoch_ms(create_expiration(1_234, rounding))
        assert expires_ms % rounding == 0
        exact = clock.now_ms + 1_234
        assert exact - rounding < expires_ms <= exact

    def test_rounding_1000_example(self, clock) -> None:
        clock.set(0)
        assert to_epoch_ms(create_expiration(60_000, 1000)) == 60_000

    def test_zero_shelf_life_is_now(self, clock) -> None:
        assert to_epoch_ms(create_expiration(0)) == clock.now_ms

    def test_negative_shelf_life_is_in_the_past(self, clock) -> None:
        expires = create_expiration(-1_000)
        assert expires < from_epoch_ms(clock.now_ms)

    def test_unsupported_rounding_raises(self) -> None:
        with pytest.raises(ValueError, match="rounding"):
            create_expiration(1_000, 7)

    def test_without_pinned_clock_is_close_to_now(self) -> None:
        expires = create_expiration(60_000)
        delta = expires - datetime.now(timezone.utc)
        assert timedelta(seconds=59) < delta <= timedelta(seconds=60)


# ---------------------------------------------------------------------------
# get_ttl
# ---------------------------------------------------------------------------


class TestGetTTL:
    def test_fixed_ttl_wins(self) -> None:
        options = StoreOptions(ttl=42_000)
        assert get_ttl(options, {"cookie": {"max_age": 5}}, "sid") == 42_000

    def test_callable_ttl_receives_arguments(self) -> None:
        seen: list[tuple[object, ...]] = []

        def ttl(options: StoreOptions, session: object, sid: str) -> int:
            seen.append((options, session, sid))
            return 7_000

        options = StoreOptions(ttl=ttl)
        assert get_ttl(options, {"a": 1}, "abc") == 7_000
        assert seen == [(options, {"a": 1}, "abc")]

    def test_cookie_max_age_used_when_no_ttl(self) -> None:
        assert get_ttl(StoreOptions(), {"cookie": {"max_age": 30_000}}, "s") == 30_000

    def test_cookie_max_age_is_floored(self) -> None:
        assert get_ttl(StoreOptions(), {"cookie": {"max_age": 1500.9}}, "s") == 1500

    def test_defaults_to_one_day(self) -> None:
        assert get_ttl(StoreOptions(), {"user": "alice"}, "s") == ONE_DAY_MS

    def test_non_numeric_max_age_ignored(self) -> None:
        session = {"cookie": {"max_age": "soon"}}
        assert get_ttl(StoreOptions(), session, "s") == ONE_DAY_MS

    def test_non_mapping_session_uses_default(self) -> None:
        assert get_ttl(StoreOptions(), ["not", "a", "mapping"], "s") == ONE_DAY_MS
