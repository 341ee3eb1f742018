"""Tests for the tool-side argument parsers."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import pytest

from gitlab_mcp_bridge.exceptions import GitLabCompositeError, InvalidArgumentError
from gitlab_mcp_bridge.servers._helpers import (
    gather_all,
    label_options,
    limit_or_default,
    parse_build_states,
    parse_time,
    parse_user_ids,
    put_time,
)


class TestParseUserIds:
    def test_empty_means_unchanged(self):
        assert parse_user_ids("") is None

    def test_hyphen_clears(self):
        assert parse_user_ids("-") == []

    def test_list(self):
        assert parse_user_ids("101,102") == [101, 102]

    def test_whitespace(self):
        assert parse_user_ids(" 101 , 102 ") == [101, 102]

    def test_invalid_tokens_skipped(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert parse_user_ids("101,x,102") == [101, 102]
        assert "'x'" in caplog.text

    def test_only_invalid_tokens(self):
        assert parse_user_ids("x,y") is None

    @pytest.mark.parametrize("token", ["1_0", "1.0", "0x10", "\u0661"])
    def test_non_decimal_tokens_skipped(self, token):
        assert parse_user_ids(f"7,{token}") == [7]


class TestLabelOptions:
    def test_split_and_trim(self):
        assert label_options(" bug , ux ") == ["bug", "ux"]

    def test_empty_entries_dropped(self):
        assert label_options("bug,,") == ["bug"]

    @pytest.mark.parametrize("value", ["", " , ,"])
    def test_nothing_left(self, value):
        assert label_options(value) is None


class TestParseBuildStates:
    def test_known_states(self):
        assert parse_build_states("failed,success") == ["failed", "success"]

    def test_unknown_dropped(self):
        assert parse_build_states("failed,exploded") == ["failed"]

    def test_duplicates_collapse(self):
        assert parse_build_states("failed, failed,manual") == ["failed", "manual"]

    @pytest.mark.parametrize("value", ["", "bogus", "bogus,,nope"])
    def test_no_filter(self, value):
        assert parse_build_states(value) is None


class TestParseTime:
    def test_empty(self):
        assert parse_time("after", "") is None

    def test_rfc3339(self):
        parsed = parse_time("after", "2024-05-01T10:20:30Z")
        assert parsed == datetime(2024, 5, 1, 10, 20, 30, tzinfo=timezone.utc)

    def test_date_time(self):
        assert parse_time("after", "2024-05-01 10:20:30") == datetime(2024, 5, 1, 10, 20, 30)

    def test_date(self):
        assert parse_time("after", "2024-05-01") == datetime(2024, 5, 1)

    def test_invalid(self):
        with pytest.raises(InvalidArgumentError, match="invalid created_after date"):
            parse_time("created_after", "yesterday")

    def test_put_time(self):
        params: dict = {}
        put_time(params, "updated_before", "2024-05-01")
        put_time(params, "updated_after", "")
        assert params == {"updated_before": "2024-05-01T00:00:00"}


def test_limit_or_default():
    assert limit_or_default(0) == 1000
    assert limit_or_default(-5) == 1000
    assert limit_or_default(7) == 7
    assert limit_or_default(0, 100) == 100


class TestGatherAll:
    async def test_results_in_order(self):
        async def value(v):
            return v

        assert await gather_all(value(1), value(2)) == [1, 2]

    async def test_all_failures_joined(self):
        async def ok():
            return "fine"

        async def fail(msg):
            raise RuntimeError(msg)

        with pytest.raises(GitLabCompositeError) as exc_info:
            await gather_all(fail("first broke"), ok(), fail("second broke"))
        assert [str(e) for e in exc_info.value.errors] == ["first broke", "second broke"]
        assert str(exc_info.value) == "first broke\nsecond broke"
