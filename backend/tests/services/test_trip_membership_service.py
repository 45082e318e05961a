"""
Tests for TripMembershipService.

The capacity scenarios run the real guarded UPDATE against SQLite; row locks
are a no-op there, so these cover the sequential half of the overbooking
guarantee.
"""

from datetime import timedelta
from unittest.mock import patch

import pytest

from travelgraph.core.exceptions import (
    AlreadyExistsException,
    AlreadyResolvedException,
    CapacityExceededException,
    InvalidStateException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
)
from travelgraph.models.activity import ActivityEvent
from travelgraph.models.trip import Trip, TripMember
from travelgraph.models.trip_request import TripRequest
from travelgraph.services.trip_membership_service import TripMembershipService


@pytest.fixture
def seated_trip(db, alice, make_trip):
    """A trip owned by alice with her already on the roster."""

    def _seated(max_group_size=None):
        trip = make_trip(alice, max_group_size=max_group_size)
        TripMembershipService(db).add_owner(trip.id, alice.id)
        db.refresh(trip)
        return trip

    return _seated


def _size(db, trip_id):
    db.expire_all()
    return db.query(Trip).filter(Trip.id == trip_id).one().current_group_size


class TestAddOwner:
    def test_seats_owner_once(self, db, alice, make_trip):
        trip = make_trip(alice, max_group_size=4)
        service = TripMembershipService(db)

        member = service.add_owner(trip.id, alice.id)
        service.add_owner(trip.id, alice.id)

        assert member.role == "owner"
        assert db.query(TripMember).count() == 1
        assert _size(db, trip.id) == 1

    def test_only_creator_can_be_owner(self, db, alice, bob, make_trip):
        trip = make_trip(alice)

        with pytest.raises(UnauthorizedException):
            TripMembershipService(db).add_owner(trip.id, bob.id)


class TestRequestJoin:
    def test_creates_pending_request(self, db, bob, seated_trip):
        trip = seated_trip(max_group_size=4)

        request = TripMembershipService(db).request_join(trip.id, bob.id, "  Count me in!  ")

        assert request.status == "pending"
        assert request.message == "Count me in!"
        assert request.dismissed is False

    def test_owner_cannot_request(self, db, alice, seated_trip):
        trip = seated_trip()

        with pytest.raises(UnauthorizedException):
            TripMembershipService(db).request_join(trip.id, alice.id)

    def test_second_request_conflicts_even_after_rejection(self, db, alice, bob, seated_trip):
        trip = seated_trip()
        service = TripMembershipService(db)
        request = service.request_join(trip.id, bob.id)
        service.resolve_request(request.id, alice.id, "rejected")

        with pytest.raises(AlreadyExistsException):
            service.request_join(trip.id, bob.id)

    def test_full_trip_refuses_new_requests(self, db, bob, seated_trip):
        trip = seated_trip(max_group_size=1)

        with pytest.raises(CapacityExceededException):
            TripMembershipService(db).request_join(trip.id, bob.id)
        assert db.query(TripRequest).count() == 0

    def test_missing_trip(self, db, bob):
        with pytest.raises(NotFoundException):
            TripMembershipService(db).request_join("01HZZZZZZZZZZZZZZZZZZZZZZZ", bob.id)


class TestResolveRequest:
    def test_accept_adds_member_and_counts_seat(self, db, alice, bob, seated_trip):
        trip = seated_trip(max_group_size=4)
        service = TripMembershipService(db)
        request = service.request_join(trip.id, bob.id)

        resolved = service.resolve_request(request.id, alice.id, "accepted")

        assert resolved.status == "accepted"
        assert service.is_member(trip.id, bob.id, role="member")
        assert _size(db, trip.id) == 2
        joined = db.query(ActivityEvent).filter(ActivityEvent.event_type == "joined_trip").one()
        assert joined.user_id == bob.id
        assert joined.related_id == trip.id

    def test_last_seat_goes_to_first_accept_only(self, db, alice, bob, carol, seated_trip):
        trip = seated_trip(max_group_size=2)
        service = TripMembershipService(db)
        first = service.request_join(trip.id, bob.id)
        second = service.request_join(trip.id, carol.id)

        service.resolve_request(first.id, alice.id, "accepted")
        with pytest.raises(CapacityExceededException):
            service.resolve_request(second.id, alice.id, "accepted")

        db.expire_all()
        assert db.query(TripRequest).filter(TripRequest.id == second.id).one().status == "pending"
        assert not service.is_member(trip.id, carol.id)
        assert _size(db, trip.id) == 2

    def test_seat_is_not_counted_when_member_row_already_landed(self, db, alice, bob, seated_trip):
        trip = seated_trip(max_group_size=4)
        service = TripMembershipService(db)
        request = service.request_join(trip.id, bob.id)
        real_add = service.member_repository.add_ignore_conflict

        def lose_race(trip_id, user_id, role):
            # Another writer inserted the same member first
            real_add(trip_id, user_id, role)
            return False

        with patch.object(service.member_repository, "add_ignore_conflict", side_effect=lose_race):
            resolved = service.resolve_request(request.id, alice.id, "accepted")

        assert resolved.status == "accepted"
        assert service.is_member(trip.id, bob.id)
        assert _size(db, trip.id) == 1

    def test_only_owner_can_resolve(self, db, bob, carol, seated_trip):
        trip = seated_trip()
        service = TripMembershipService(db)
        request = service.request_join(trip.id, bob.id)

        with pytest.raises(UnauthorizedException):
            service.resolve_request(request.id, carol.id, "accepted")

    def test_resolved_request_cannot_be_resolved_again(self, db, alice, bob, seated_trip):
        trip = seated_trip()
        service = TripMembershipService(db)
        request = service.request_join(trip.id, bob.id)
        service.resolve_request(request.id, alice.id, "rejected")

        with pytest.raises(AlreadyResolvedException):
            service.resolve_request(request.id, alice.id, "accepted")

    def test_expire_is_allowed_on_resolved_request(self, db, alice, bob, seated_trip):
        trip = seated_trip()
        service = TripMembershipService(db)
        request = service.request_join(trip.id, bob.id)
        service.resolve_request(request.id, alice.id, "accepted")

        expired = service.resolve_request(request.id, alice.id, "expired")

        assert expired.status == "expired"
        # Membership is not revoked by expiring the request
        assert service.is_member(trip.id, bob.id)

    def test_reject_resets_dismissed(self, db, alice, bob, seated_trip):
        trip = seated_trip()
        service = TripMembershipService(db)
        request = service.request_join(trip.id, bob.id)
        db.query(TripRequest).update({TripRequest.dismissed: True}, synchronize_session=False)
        db.commit()
        db.expire_all()

        rejected = service.resolve_request(request.id, alice.id, "rejected")

        assert rejected.status == "rejected"
        assert rejected.dismissed is False

    def test_unknown_and_pending_statuses_are_refused(self, db, alice, bob, seated_trip):
        trip = seated_trip()
        service = TripMembershipService(db)
        request = service.request_join(trip.id, bob.id)

        with pytest.raises(ValidationException):
            service.resolve_request(request.id, alice.id, "maybe")
        with pytest.raises(InvalidStateException):
            service.resolve_request(request.id, alice.id, "pending")

    def test_dismiss_notice_by_requester(self, db, alice, bob, carol, seated_trip):
        trip = seated_trip()
        service = TripMembershipService(db)
        request = service.request_join(trip.id, bob.id)
        service.resolve_request(request.id, alice.id, "accepted")

        with pytest.raises(UnauthorizedException):
            service.dismiss_request_notice(request.id, carol.id)
        dismissed = service.dismiss_request_notice(request.id, bob.id)

        assert dismissed.dismissed is True


class TestRoster:
    def test_sole_owner_cannot_leave(self, db, alice, seated_trip):
        trip = seated_trip()
        service = TripMembershipService(db)

        with pytest.raises(InvalidStateException):
            service.leave(trip.id, alice.id)

        assert service.is_member(trip.id, alice.id, role="owner")
        assert _size(db, trip.id) == 1

    def test_member_leaves_and_frees_seat(self, db, alice, bob, seated_trip):
        trip = seated_trip(max_group_size=2)
        service = TripMembershipService(db)
        request = service.request_join(trip.id, bob.id)
        service.resolve_request(request.id, alice.id, "accepted")

        service.leave(trip.id, bob.id)

        assert not service.is_member(trip.id, bob.id)
        assert _size(db, trip.id) == 1
        assert db.query(ActivityEvent).filter(ActivityEvent.event_type == "left_trip").count() == 1

    def test_leave_when_not_member(self, db, bob, seated_trip):
        trip = seated_trip()

        with pytest.raises(NotFoundException):
            TripMembershipService(db).leave(trip.id, bob.id)

    def test_owner_removes_member(self, db, alice, bob, carol, seated_trip):
        trip = seated_trip()
        service = TripMembershipService(db)
        request = service.request_join(trip.id, bob.id)
        service.resolve_request(request.id, alice.id, "accepted")

        with pytest.raises(UnauthorizedException):
            service.remove_member(trip.id, bob.id, actor_id=carol.id)
        service.remove_member(trip.id, bob.id, actor_id=alice.id)

        assert not service.is_member(trip.id, bob.id)
        assert _size(db, trip.id) == 1

    def test_counter_never_goes_negative(self, db, alice, bob, seated_trip):
        trip = seated_trip()
        service = TripMembershipService(db)
        request = service.request_join(trip.id, bob.id)
        service.resolve_request(request.id, alice.id, "accepted")
        db.query(Trip).update({Trip.current_group_size: 0}, synchronize_session=False)
        db.commit()

        service.leave(trip.id, bob.id)

        assert _size(db, trip.id) == 0

    def test_promote_then_last_owner_demotion_blocked(self, db, alice, bob, seated_trip):
        trip = seated_trip()
        service = TripMembershipService(db)
        request = service.request_join(trip.id, bob.id)
        service.resolve_request(request.id, alice.id, "accepted")

        promoted = service.update_member_role(trip.id, bob.id, "owner", actor_id=alice.id)
        assert promoted.role == "owner"

        # Two owners: alice can step down
        service.update_member_role(trip.id, alice.id, "member", actor_id=bob.id)
        with pytest.raises(InvalidStateException):
            service.update_member_role(trip.id, bob.id, "member", actor_id=bob.id)

    def test_list_members_and_capacity(self, db, alice, bob, seated_trip):
        trip = seated_trip(max_group_size=3)
        service = TripMembershipService(db)
        request = service.request_join(trip.id, bob.id)
        service.resolve_request(request.id, alice.id, "accepted")

        members = service.list_members(trip.id)
        owners = service.list_members(trip.id, role="owner")
        capacity = service.get_capacity(trip.id)

        assert [item.user.id for item in members] == [alice.id, bob.id]
        assert [item.user.id for item in owners] == [alice.id]
        assert capacity.current_group_size == 2
        assert capacity.max_group_size == 3


class TestListRequests:
    def test_owner_view_and_requester_view(self, db, alice, bob, carol, seated_trip):
        trip = seated_trip()
        service = TripMembershipService(db)
        service.request_join(trip.id, bob.id)
        service.request_join(trip.id, carol.id)

        owner_view = service.list_requests_for_owner(trip.id, alice.id, statuses=["pending"])
        mine = service.list_requests(user_id=bob.id)

        assert {item.requester.id for item in owner_view} == {bob.id, carol.id}
        assert [item.trip_title for item in mine] == [trip.title]

    def test_non_owner_cannot_list(self, db, bob, seated_trip):
        trip = seated_trip()

        with pytest.raises(UnauthorizedException):
            TripMembershipService(db).list_requests_for_owner(trip.id, bob.id)


class TestMemberTrips:
    def test_seated_trips_newest_first(self, db, alice, bob, make_trip, age_rows):
        service = TripMembershipService(db)
        older = make_trip(alice, title="Older")
        newer = make_trip(bob, max_group_size=5, title="Newer")
        service.add_owner(older.id, alice.id)
        service.add_owner(newer.id, bob.id)
        request = service.request_join(newer.id, alice.id)
        service.resolve_request(request.id, bob.id, "accepted")
        age_rows(Trip, Trip.created_at, timedelta(days=3), Trip.id == older.id)

        items = service.list_member_trips(alice.id)

        assert [item.trip.id for item in items] == [newer.id, older.id]
        assert [item.role for item in items] == ["member", "owner"]
        assert items[0].trip.current_group_size == 2

    def test_trips_of_deactivated_owners_are_hidden(self, db, alice, bob, make_trip):
        service = TripMembershipService(db)
        trip = make_trip(bob)
        service.add_owner(trip.id, bob.id)
        request = service.request_join(trip.id, alice.id)
        service.resolve_request(request.id, bob.id, "accepted")

        bob.deactivated = True
        db.commit()

        assert service.list_member_trips(alice.id) == []

    def test_pagination(self, db, alice, make_trip):
        service = TripMembershipService(db)
        for n in range(3):
            service.add_owner(make_trip(alice, title=f"Trip {n}").id, alice.id)

        assert len(service.list_member_trips(alice.id, limit=2)) == 2
        assert len(service.list_member_trips(alice.id, limit=2, offset=2)) == 1
