"""Tests for qb_common.id_generator and qb_common.datetime_utils."""

from datetime import UTC, datetime
from unittest.mock import patch

from src.qb_common.datetime_utils import isoformat_or_empty
from src.qb_common.id_generator import ID_WIDTH, SnowflakeIdGenerator, generate_id


class TestSnowflakeIdGenerator:
    def test_fixed_width_digits(self) -> None:
        value = generate_id()
        assert len(value) == ID_WIDTH
        assert value.isdigit()

    def test_unique_ids(self) -> None:
        gen = SnowflakeIdGenerator()
        ids = {gen.next_id() for _ in range(1000)}
        assert len(ids) == 1000

    def test_text_order_matches_creation_order(self) -> None:
        gen = SnowflakeIdGenerator()
        ids = [gen.next_id() for _ in range(200)]
        assert ids == sorted(ids)

    def test_clock_going_backwards_keeps_order(self) -> None:
        gen = SnowflakeIdGenerator()
        with patch("src.qb_common.id_generator.time.time", return_value=1_800_000_000.0):
            first = gen.next_id()
        with patch("src.qb_common.id_generator.time.time", return_value=1_799_999_999.0):
            second = gen.next_id()
        assert second > first

    def test_sequence_overflow_moves_to_next_millisecond(self) -> None:
        gen = SnowflakeIdGenerator()
        with patch("src.qb_common.id_generator.time.time", return_value=1_800_000_000.0):
            first = gen.next_id()
            gen._sequence = SnowflakeIdGenerator._MAX_SEQUENCE
            second = gen.next_id()
        assert int(second) >> SnowflakeIdGenerator._SEQUENCE_BITS == (
            (int(first) >> SnowflakeIdGenerator._SEQUENCE_BITS) + 1
        )


class TestIsoformatOrEmpty:
    def test_none(self) -> None:
        assert isoformat_or_empty(None) == ""

    def test_datetime(self) -> None:
        dt = datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC)
        assert isoformat_or_empty(dt) == "2026-01-02T03:04:05+00:00"
