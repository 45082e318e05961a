"""
Tests for the core helpers: canonical pairs, exception codes, settings and
UTC handling.
"""

from datetime import datetime, timedelta, timezone

import pytest

from travelgraph.core.config import Settings
from travelgraph.core.exceptions import (
    AlreadyExistsException,
    AlreadyResolvedException,
    CapacityExceededException,
    InvalidStateException,
    NotFoundException,
    SelfReferenceException,
    ServiceException,
    UnauthorizedException,
    status_for_code,
)
from travelgraph.core.pairs import CanonicalPair, canonical_pair
from travelgraph.core.timezone_utils import EPOCH, cursor_or_epoch, ensure_utc
from travelgraph.core.ulid_helper import generate_ulid, is_valid_ulid


class TestCanonicalPair:
    def test_orders_ids_regardless_of_argument_order(self):
        low, high = "01AAAAAAAAAAAAAAAAAAAAAAAA", "01BBBBBBBBBBBBBBBBBBBBBBBB"

        assert canonical_pair(high, low) == CanonicalPair(low, high)
        assert canonical_pair(low, high) == CanonicalPair(low, high)

    def test_rejects_identical_ids(self):
        user_id = generate_ulid()

        with pytest.raises(SelfReferenceException):
            canonical_pair(user_id, user_id)

    def test_side_of_and_other(self):
        pair = canonical_pair("01BBBBBBBBBBBBBBBBBBBBBBBB", "01AAAAAAAAAAAAAAAAAAAAAAAA")

        assert pair.side_of(pair.low) == "low"
        assert pair.side_of(pair.high) == "high"
        assert pair.other(pair.low) == pair.high
        assert pair.contains(pair.high)
        assert not pair.contains(generate_ulid())

    def test_side_of_outsider_is_unauthorized(self):
        pair = canonical_pair(generate_ulid(), generate_ulid())

        with pytest.raises(UnauthorizedException):
            pair.side_of(generate_ulid())


class TestExceptionCodes:
    @pytest.mark.parametrize(
        "exc,code,status_code",
        [
            (NotFoundException("missing"), "NOT_FOUND", 404),
            (AlreadyExistsException("dup"), "ALREADY_EXISTS", 409),
            (AlreadyResolvedException("accepted"), "ALREADY_RESOLVED", 409),
            (SelfReferenceException("self"), "SELF_REFERENCE", 400),
            (UnauthorizedException("nope"), "UNAUTHORIZED", 403),
            (CapacityExceededException(2, 2), "CAPACITY_EXCEEDED", 422),
            (InvalidStateException("bad"), "INVALID_STATE", 422),
            (ServiceException("db"), "SERVICE_ERROR", 500),
        ],
    )
    def test_code_maps_to_status(self, exc, code, status_code):
        assert exc.code == code
        assert status_for_code(exc.code) == status_code

    def test_unknown_code_is_server_error(self):
        assert status_for_code(None) == 500
        assert status_for_code("SOMETHING_ELSE") == 500

    def test_capacity_details(self):
        exc = CapacityExceededException(max_group_size=4, current_group_size=4)

        assert exc.details == {"max_group_size": 4, "current_group_size": 4}
        assert status_for_code(exc.code) == 422

    def test_already_resolved_mentions_status(self):
        exc = AlreadyResolvedException("rejected")

        assert "rejected" in exc.message
        assert exc.details == {"status": "rejected"}


class TestSettings:
    def test_clamp_page_size(self):
        config = Settings(default_page_size=20, max_page_size=100)

        assert config.clamp_page_size(None) == 20
        assert config.clamp_page_size(0) == 20
        assert config.clamp_page_size(-5) == 20
        assert config.clamp_page_size(35) == 35
        assert config.clamp_page_size(1000) == 100

    def test_defaults(self):
        config = Settings()

        assert config.match_rejection_cooldown_days == 3
        assert config.message_max_length == 2000

    def test_log_level_is_normalized(self):
        assert Settings(log_level=" debug ").log_level == "DEBUG"

    def test_unknown_log_level_is_rejected(self):
        with pytest.raises(ValueError):
            Settings(log_level="chatty")

    def test_production_flag(self):
        assert Settings(environment="Production").is_production
        assert not Settings(environment="development").is_production


class TestTimezoneUtils:
    def test_naive_values_are_utc(self):
        naive = datetime(2024, 5, 1, 12, 0, 0)

        assert ensure_utc(naive) == datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

    def test_aware_values_are_converted(self):
        eastern = timezone(timedelta(hours=-5))
        value = datetime(2024, 5, 1, 7, 0, 0, tzinfo=eastern)

        assert ensure_utc(value) == datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

    def test_missing_cursor_is_epoch(self):
        assert ensure_utc(None) is None
        assert cursor_or_epoch(None) == EPOCH


def test_generated_ulids_are_valid():
    value = generate_ulid()

    assert len(value) == 26
    assert is_valid_ulid(value)
    assert not is_valid_ulid("not-a-ulid")
