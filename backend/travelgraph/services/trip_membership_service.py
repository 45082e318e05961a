# backend/travelgraph/services/trip_membership_service.py
"""
Trip Membership Service.

Join requests and the trip roster:

    (none) -> pending -> accepted | rejected | expired

Accepting a request is one transaction: lock the trip row, recheck capacity,
add the member, increment ``current_group_size`` with a guarded UPDATE, flip
the request and record the ``joined_trip`` event. If the guarded increment
matches no row the trip is full and everything rolls back, leaving the
request pending. The capacity predicate lives in the UPDATE itself, so two
racing accepts cannot both take the last seat.
"""

import logging
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import ActivityEventType, TripMemberRole, TripRequestStatus
from ..core.exceptions import (
    AlreadyExistsException,
    AlreadyResolvedException,
    CapacityExceededException,
    InvalidStateException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
)
from ..models.trip import Trip, TripMember
from ..models.trip_request import TripRequest
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..repositories.trip_repository import TripMemberRepository, TripRepository
from ..repositories.trip_request_repository import TripRequestRepository
from ..repositories.user_repository import UserRepository
from ..schemas.trip import (
    MemberTripItem,
    TripMemberListItem,
    TripMemberResponse,
    TripRequestListItem,
    TripRequestResponse,
    TripSummary,
)
from ..schemas.user import UserSummary
from .activity_feed_service import ActivityFeedService
from .base import BaseService

logger = logging.getLogger(__name__)


class TripMembershipService(BaseService):
    """Join request lifecycle and roster management with atomic capacity."""

    def __init__(
        self,
        db: Session,
        trip_repository: Optional[TripRepository] = None,
        member_repository: Optional[TripMemberRepository] = None,
        request_repository: Optional[TripRequestRepository] = None,
        user_repository: Optional[UserRepository] = None,
        activity_service: Optional[ActivityFeedService] = None,
    ):
        super().__init__(db)
        self.trip_repository = trip_repository or RepositoryFactory.create_trip_repository(db)
        self.member_repository = (
            member_repository or RepositoryFactory.create_trip_member_repository(db)
        )
        self.request_repository = (
            request_repository or RepositoryFactory.create_trip_request_repository(db)
        )
        self.user_repository = user_repository or RepositoryFactory.create_user_repository(db)
        self.activity_service = activity_service or ActivityFeedService(db)

    def _get_trip(self, trip_id: str, for_update: bool = False) -> Trip:
        trip = self.trip_repository.get_by_id(trip_id, for_update=for_update)
        if trip is None:
            raise NotFoundException("Trip not found.")
        return trip

    def _is_owner(self, trip: Trip, user_id: str) -> bool:
        if trip.owner_id == user_id:
            return True
        member = self.member_repository.get_member(trip.id, user_id)
        return member is not None and member.role == TripMemberRole.OWNER.value

    # Join requests

    @BaseService.measure_operation("request_join")
    def request_join(self, trip_id: str, user_id: str, message: Optional[str] = None) -> TripRequest:
        """
        Ask to join a trip.

        Raises:
            NotFoundException: trip or user missing
            UnauthorizedException: the owner asking to join their own trip
            AlreadyExistsException: a prior request (any status) or membership exists
            CapacityExceededException: the trip is already full
        """
        trip = self._get_trip(trip_id)
        if not self.user_repository.is_active(user_id):
            raise NotFoundException("User not found.")
        if trip.owner_id == user_id:
            raise UnauthorizedException("You already own this trip.")
        if self.request_repository.find_for_pair(trip_id, user_id) is not None:
            raise AlreadyExistsException("You have already requested to join this trip.")
        if self.member_repository.get_member(trip_id, user_id) is not None:
            raise AlreadyExistsException("You are already a member of this trip.")

        self.trip_repository.refresh(trip)
        if trip.is_full:
            raise CapacityExceededException(trip.max_group_size, trip.current_group_size)

        text = (message or "").strip() or None
        with self.transaction():
            inserted = self.request_repository.insert_pending(trip_id, user_id, text)
            if not inserted:
                raise AlreadyExistsException("You have already requested to join this trip.")

        request = self.request_repository.find_for_pair(trip_id, user_id)
        prometheus_metrics.record_transition("trip_request", "created")
        self.log_operation("trip_join_requested", trip_id=trip_id, user_id=user_id)
        return request

    @BaseService.measure_operation("resolve_trip_request")
    def resolve_request(self, request_id: str, actor_id: str, new_status: str) -> TripRequest:
        """
        Owner decision on a join request.

        ``accepted`` runs the capacity-checked join; ``rejected`` and
        ``expired`` are plain status writes. Expiring is allowed on resolved
        requests; anything else on a non-pending request fails.
        """
        try:
            status = TripRequestStatus(new_status)
        except ValueError:
            raise ValidationException(f"Unknown request status: {new_status}")
        if status == TripRequestStatus.PENDING:
            raise InvalidStateException("A request cannot be moved back to pending.")

        request = self.request_repository.get_by_id(request_id)
        if request is None:
            raise NotFoundException("Trip request not found.")
        trip = self._get_trip(request.trip_id)
        if not self._is_owner(trip, actor_id):
            raise UnauthorizedException("Only the trip owner can respond to join requests.")

        if request.status != TripRequestStatus.PENDING.value and status != TripRequestStatus.EXPIRED:
            raise AlreadyResolvedException(request.status)

        if status == TripRequestStatus.ACCEPTED:
            self._accept(request, trip)
        else:
            with self.transaction():
                if status == TripRequestStatus.EXPIRED:
                    self.request_repository.force_status(request.id, status.value)
                elif not self.request_repository.transition_from_pending(
                    request.id, status.value
                ):
                    raise AlreadyResolvedException("resolved")
            prometheus_metrics.record_transition("trip_request", status.value)

        self.request_repository.refresh(request)
        self.log_operation(
            "trip_request_resolved",
            request_id=request.id,
            trip_id=request.trip_id,
            status=request.status,
        )
        return request

    def _accept(self, request: TripRequest, trip: Trip) -> None:
        with self.transaction():
            locked = self._get_trip(trip.id, for_update=True)
            self.trip_repository.refresh(locked)

            already_member = self.member_repository.get_member(trip.id, request.user_id)
            if already_member is None:
                if locked.is_full:
                    raise CapacityExceededException(
                        locked.max_group_size, locked.current_group_size
                    )
                seated = self.member_repository.add_ignore_conflict(
                    trip.id, request.user_id, TripMemberRole.MEMBER.value
                )
                # A concurrent insert of the same member already counted the seat
                if seated and not self.trip_repository.increment_group_size_if_capacity(trip.id):
                    raise CapacityExceededException(
                        locked.max_group_size, locked.current_group_size
                    )

            if not self.request_repository.transition_from_pending(
                request.id, TripRequestStatus.ACCEPTED.value
            ):
                raise AlreadyResolvedException("resolved")

            self.activity_service.record_event(
                ActivityEventType.JOINED_TRIP.value,
                request.user_id,
                related_id=trip.id,
                payload={"trip_title": trip.title},
            )
        prometheus_metrics.record_transition("trip_request", "accepted")

    @BaseService.measure_operation("dismiss_trip_request_notice")
    def dismiss_request_notice(self, request_id: str, user_id: str) -> TripRequest:
        """The requester hides the outcome card for their request."""
        request = self.request_repository.get_by_id(request_id)
        if request is None:
            raise NotFoundException("Trip request not found.")
        if request.user_id != user_id:
            raise UnauthorizedException("Only the requester can dismiss this notification.")
        with self.transaction():
            self.request_repository.set_dismissed(request.id)
        self.request_repository.refresh(request)
        return request

    def list_requests(
        self,
        trip_id: Optional[str] = None,
        user_id: Optional[str] = None,
        statuses: Optional[Sequence[str]] = None,
        dismissed: Optional[bool] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[TripRequestListItem]:
        rows = self.request_repository.list_filtered(
            trip_id=trip_id,
            user_id=user_id,
            statuses=statuses,
            dismissed=dismissed,
            limit=settings.clamp_page_size(limit),
            offset=max(offset, 0),
        )
        return [
            TripRequestListItem(
                request=TripRequestResponse.model_validate(request),
                requester=UserSummary.model_validate(requester),
                trip_title=trip.title,
            )
            for request, requester, trip in rows
        ]

    def list_requests_for_owner(
        self,
        trip_id: str,
        actor_id: str,
        statuses: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[TripRequestListItem]:
        """Join requests on one trip, visible to its owners only."""
        trip = self._get_trip(trip_id)
        if not self._is_owner(trip, actor_id):
            raise UnauthorizedException("Only trip owners can view join requests.")
        return self.list_requests(trip_id=trip_id, statuses=statuses, limit=limit, offset=offset)

    # Roster

    @BaseService.measure_operation("add_trip_owner")
    def add_owner(self, trip_id: str, owner_id: str) -> TripMember:
        """
        Seat the trip's creator. Called by the trip layer after it creates a trip.

        Idempotent: a second call leaves the roster and counter unchanged.
        """
        trip = self._get_trip(trip_id)
        if trip.owner_id != owner_id:
            raise UnauthorizedException("Only the trip creator can be added as owner.")

        with self.transaction():
            if self.member_repository.add_ignore_conflict(
                trip_id, owner_id, TripMemberRole.OWNER.value
            ):
                if not self.trip_repository.increment_group_size_if_capacity(trip_id):
                    raise CapacityExceededException(
                        trip.max_group_size, trip.current_group_size
                    )
            else:
                member = self.member_repository.get_member(trip_id, owner_id)
                if member.role != TripMemberRole.OWNER.value:
                    self.member_repository.set_role(trip_id, owner_id, TripMemberRole.OWNER.value)

        return self.member_repository.get_member(trip_id, owner_id)

    def _remove(self, trip: Trip, user_id: str, event: bool) -> None:
        member = self.member_repository.get_member(trip.id, user_id)
        if member is None:
            raise NotFoundException("Membership not found.")
        if (
            member.role == TripMemberRole.OWNER.value
            and self.member_repository.count_owners(trip.id) <= 1
        ):
            raise InvalidStateException("The last owner cannot be removed from a trip.")

        with self.transaction():
            if self.member_repository.remove(trip.id, user_id):
                self.trip_repository.decrement_group_size(trip.id)
                if event:
                    self.activity_service.record_event(
                        ActivityEventType.LEFT_TRIP.value,
                        user_id,
                        related_id=trip.id,
                        payload={"trip_title": trip.title},
                    )

    @BaseService.measure_operation("leave_trip")
    def leave(self, trip_id: str, user_id: str) -> None:
        """Leave a trip. Owners must transfer ownership or delete the trip instead."""
        trip = self._get_trip(trip_id)
        member = self.member_repository.get_member(trip_id, user_id)
        if member is None:
            raise NotFoundException("You are not a member of this trip.")
        if member.role == TripMemberRole.OWNER.value:
            raise InvalidStateException("Trip owners cannot leave their own trip.")
        self._remove(trip, user_id, event=True)
        self.log_operation("trip_left", trip_id=trip_id, user_id=user_id)

    @BaseService.measure_operation("remove_trip_member")
    def remove_member(self, trip_id: str, user_id: str, actor_id: str) -> None:
        """Owner removes a member, or a member removes themself."""
        trip = self._get_trip(trip_id)
        if actor_id != user_id and not self._is_owner(trip, actor_id):
            raise UnauthorizedException("Only trip owners can remove other members.")
        self._remove(trip, user_id, event=actor_id == user_id)
        self.log_operation("trip_member_removed", trip_id=trip_id, user_id=user_id, actor_id=actor_id)

    @BaseService.measure_operation("update_member_role")
    def update_member_role(
        self, trip_id: str, user_id: str, role: str, actor_id: str
    ) -> TripMember:
        try:
            new_role = TripMemberRole(role)
        except ValueError:
            raise ValidationException(f"Unknown role: {role}")

        trip = self._get_trip(trip_id)
        if not self._is_owner(trip, actor_id):
            raise UnauthorizedException("Only trip owners can change roles.")
        member = self.member_repository.get_member(trip_id, user_id)
        if member is None:
            raise NotFoundException("Membership not found.")
        if member.role == new_role.value:
            return member
        if (
            member.role == TripMemberRole.OWNER.value
            and self.member_repository.count_owners(trip_id) <= 1
        ):
            raise InvalidStateException("The last owner cannot be demoted.")

        with self.transaction():
            self.member_repository.set_role(trip_id, user_id, new_role.value)
        self.member_repository.refresh(member)
        return member

    def list_members(self, trip_id: str, role: Optional[str] = None) -> List[TripMemberListItem]:
        self._get_trip(trip_id)
        return [
            TripMemberListItem(
                member=TripMemberResponse.model_validate(member),
                user=UserSummary.model_validate(user),
            )
            for member, user in self.member_repository.list_members(trip_id, role)
        ]

    def list_member_trips(
        self, user_id: str, limit: Optional[int] = None, offset: int = 0
    ) -> List[MemberTripItem]:
        """Trips the user belongs to in any role, newest trip first."""
        rows = self.member_repository.list_trips_for_user(
            user_id, settings.clamp_page_size(limit), max(offset, 0)
        )
        return [
            MemberTripItem(
                trip=TripSummary.model_validate(trip),
                role=member.role,
                joined_at=member.joined_at,
            )
            for trip, member in rows
        ]

    def is_member(self, trip_id: str, user_id: str, role: Optional[str] = None) -> bool:
        member = self.member_repository.get_member(trip_id, user_id)
        if member is None:
            return False
        return role is None or member.role == role

    def get_capacity(self, trip_id: str) -> Trip:
        trip = self.trip_repository.get_fresh(trip_id)
        if trip is None:
            raise NotFoundException("Trip not found.")
        return trip
