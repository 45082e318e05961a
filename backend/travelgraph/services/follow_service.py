# backend/travelgraph/services/follow_service.py
"""
Follow Service.

Directed follow edges with a request/accept lifecycle:

    (none) -> pending -> accepted
    pending -> (deleted)    on reject or cancel
    accepted -> (deleted)   on unfollow

A request that meets a reciprocal pending request is resolved immediately:
the reciprocal edge is accepted and the new edge is created accepted too, so
no pending rows remain for the pair.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import ActivityEventType, FollowRelation, FollowRequestOutcome, FollowStatus
from ..core.exceptions import (
    AlreadyExistsException,
    NotFoundException,
    SelfReferenceException,
    UnauthorizedException,
    ValidationException,
)
from ..models.follow import Follow
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..repositories.follow_repository import FollowRepository
from ..repositories.user_repository import UserRepository
from ..schemas.follow import FollowEdgeResponse, FollowListItem, FollowRequestResult
from ..schemas.user import UserSummary
from .activity_feed_service import ActivityFeedService
from .base import BaseService
from .conversation_service import ConversationService

logger = logging.getLogger(__name__)


class FollowService(BaseService):
    """Request, accept, reject, cancel and unfollow, plus follow graph reads."""

    def __init__(
        self,
        db: Session,
        follow_repository: Optional[FollowRepository] = None,
        user_repository: Optional[UserRepository] = None,
        conversation_service: Optional[ConversationService] = None,
        activity_service: Optional[ActivityFeedService] = None,
    ):
        super().__init__(db)
        self.follow_repository = follow_repository or RepositoryFactory.create_follow_repository(db)
        self.user_repository = user_repository or RepositoryFactory.create_user_repository(db)
        self.conversation_service = conversation_service or ConversationService(db)
        self.activity_service = activity_service or ActivityFeedService(db)

    def _require_active(self, user_id: str) -> None:
        if not self.user_repository.is_active(user_id):
            raise NotFoundException("User not found.")

    def _emit_follow_event(self, follower_id: str, following_id: str) -> None:
        self.run_cascade(
            "follow_event",
            lambda: self.activity_service.record_event(
                ActivityEventType.FOLLOW.value,
                follower_id,
                related_id=following_id,
                target_user_id=following_id,
            ),
        )

    def _promote(self, follower_id: str, following_id: str) -> bool:
        """Flip pending to accepted and upgrade the pair's conversation. No commit."""
        if not self.follow_repository.promote_pending(follower_id, following_id):
            return False
        self.conversation_service.upgrade_if_mutual(follower_id, following_id)
        prometheus_metrics.record_transition("follow", "pending_to_accepted")
        return True

    @BaseService.measure_operation("send_follow_request")
    def send_request(self, follower_id: str, target_id: str) -> FollowRequestResult:
        """
        Request to follow ``target_id``.

        Raises:
            SelfReferenceException: following oneself
            NotFoundException: target missing or deactivated
            AlreadyExistsException: an edge already exists in this direction
        """
        if follower_id == target_id:
            raise SelfReferenceException("You cannot follow yourself.")
        self._require_active(target_id)

        if self.follow_repository.get_edge(follower_id, target_id) is not None:
            raise AlreadyExistsException("You already follow or requested to follow this user.")

        reciprocal = self.follow_repository.get_edge(target_id, follower_id)
        if reciprocal is not None and reciprocal.status == FollowStatus.PENDING.value:
            with self.transaction():
                promoted = self._promote(target_id, follower_id)
                if promoted:
                    self.follow_repository.insert_ignore_conflict(
                        follower_id, target_id, FollowStatus.ACCEPTED.value
                    )
                    self.conversation_service.upgrade_if_mutual(follower_id, target_id)
            if promoted:
                self._emit_follow_event(target_id, follower_id)
                self._emit_follow_event(follower_id, target_id)
                edge = self.follow_repository.get_edge(follower_id, target_id)
                self.follow_repository.refresh(edge)
                self.log_operation(
                    "follow_auto_accepted", follower_id=follower_id, target_id=target_id
                )
                return FollowRequestResult(
                    outcome=FollowRequestOutcome.AUTO_ACCEPTED,
                    edge=FollowEdgeResponse.model_validate(edge),
                )

        with self.transaction():
            inserted = self.follow_repository.insert_ignore_conflict(
                follower_id, target_id, FollowStatus.PENDING.value
            )
            if not inserted:
                raise AlreadyExistsException(
                    "You already follow or requested to follow this user."
                )
        edge = self.follow_repository.get_edge(follower_id, target_id)
        prometheus_metrics.record_transition("follow", "requested")
        self.log_operation("follow_requested", follower_id=follower_id, target_id=target_id)
        return FollowRequestResult(
            outcome=FollowRequestOutcome.SENT, edge=FollowEdgeResponse.model_validate(edge)
        )

    @BaseService.measure_operation("accept_follow_request")
    def accept(self, follower_id: str, target_id: str, actor_id: str) -> Follow:
        """
        Accept ``follower_id``'s request. Only ``target_id`` may accept.

        Accepting an already accepted edge returns it unchanged.
        """
        if actor_id != target_id:
            raise UnauthorizedException("Only the requested user can accept a follow request.")

        edge = self.follow_repository.get_edge(follower_id, target_id)
        if edge is None:
            raise NotFoundException("Follow request not found.")
        if edge.status == FollowStatus.ACCEPTED.value:
            return edge

        with self.transaction():
            promoted = self._promote(follower_id, target_id)
        if not promoted:
            # Lost a race with cancel/reject or another accept
            edge = self.follow_repository.get_edge(follower_id, target_id)
            if edge is None:
                raise NotFoundException("Follow request not found.")
            return edge

        self._emit_follow_event(follower_id, target_id)
        self.follow_repository.refresh(edge)
        self.log_operation("follow_accepted", follower_id=follower_id, target_id=target_id)
        return edge

    def _delete_pending(self, follower_id: str, target_id: str, transition: str) -> None:
        with self.transaction():
            deleted = self.follow_repository.delete_edge(
                follower_id, target_id, FollowStatus.PENDING.value
            )
            if not deleted:
                raise NotFoundException("Follow request not found.")
        prometheus_metrics.record_transition("follow", transition)

    @BaseService.measure_operation("reject_follow_request")
    def reject(self, follower_id: str, target_id: str, actor_id: str) -> None:
        if actor_id != target_id:
            raise UnauthorizedException("Only the requested user can reject a follow request.")
        self._delete_pending(follower_id, target_id, "rejected")

    @BaseService.measure_operation("cancel_follow_request")
    def cancel(self, follower_id: str, target_id: str, actor_id: str) -> None:
        if actor_id != follower_id:
            raise UnauthorizedException("Only the requester can cancel a follow request.")
        self._delete_pending(follower_id, target_id, "cancelled")

    @BaseService.measure_operation("unfollow")
    def unfollow(self, follower_id: str, target_id: str, actor_id: str) -> None:
        if actor_id != follower_id:
            raise UnauthorizedException("Only the follower can unfollow.")
        with self.transaction():
            deleted = self.follow_repository.delete_edge(
                follower_id, target_id, FollowStatus.ACCEPTED.value
            )
            if not deleted:
                raise NotFoundException("You are not following this user.")
        prometheus_metrics.record_transition("follow", "unfollowed")

    def status(self, viewer_id: Optional[str], subject_id: str) -> FollowRelation:
        """Relationship of ``viewer_id`` to ``subject_id``; anonymous viewers see not_following."""
        if not viewer_id:
            return FollowRelation.NOT_FOLLOWING
        if viewer_id == subject_id:
            return FollowRelation.SELF

        outgoing = self.follow_repository.get_edge(viewer_id, subject_id)
        if outgoing is not None:
            if outgoing.status == FollowStatus.ACCEPTED.value:
                return FollowRelation.FOLLOWING
            return FollowRelation.PENDING_OUTGOING

        incoming = self.follow_repository.get_edge(subject_id, viewer_id)
        if incoming is not None and incoming.status == FollowStatus.PENDING.value:
            return FollowRelation.PENDING_INCOMING
        return FollowRelation.NOT_FOLLOWING

    @BaseService.measure_operation("dismiss_follow_notice")
    def dismiss_accepted_notice(self, follower_id: str, target_id: str, actor_id: str) -> None:
        """Hide the "request accepted" card for the follower. Idempotent."""
        if actor_id != follower_id:
            raise UnauthorizedException("Only the follower can dismiss this notification.")
        with self.transaction():
            self.follow_repository.set_dismissed(follower_id, target_id)

    # Reads

    def is_mutual(self, user_a: str, user_b: str) -> bool:
        if user_a == user_b:
            return False
        return self.follow_repository.is_mutual(user_a, user_b)

    def list_requests(
        self, user_id: str, direction: str, limit: Optional[int] = None, offset: int = 0
    ) -> List[FollowListItem]:
        """Pending requests received (``incoming``) or sent (``outgoing``)."""
        page = settings.clamp_page_size(limit)
        if direction == "incoming":
            rows = self.follow_repository.list_incoming(
                user_id, FollowStatus.PENDING.value, page, offset
            )
        elif direction == "outgoing":
            rows = self.follow_repository.list_outgoing(
                user_id, FollowStatus.PENDING.value, page, offset
            )
        else:
            raise ValidationException("Direction must be 'incoming' or 'outgoing'.")
        return [self._list_item(edge, user) for edge, user in rows]

    def list_followers(
        self, user_id: str, limit: Optional[int] = None, offset: int = 0
    ) -> List[FollowListItem]:
        rows = self.follow_repository.list_incoming(
            user_id, FollowStatus.ACCEPTED.value, settings.clamp_page_size(limit), offset
        )
        return [self._list_item(edge, user) for edge, user in rows]

    def list_following(
        self, user_id: str, limit: Optional[int] = None, offset: int = 0
    ) -> List[FollowListItem]:
        rows = self.follow_repository.list_outgoing(
            user_id, FollowStatus.ACCEPTED.value, settings.clamp_page_size(limit), offset
        )
        return [self._list_item(edge, user) for edge, user in rows]

    def list_mutuals(
        self, user_id: str, limit: Optional[int] = None, offset: int = 0
    ) -> List[UserSummary]:
        users = self.follow_repository.list_mutuals(
            user_id, settings.clamp_page_size(limit), offset
        )
        return [UserSummary.model_validate(user) for user in users]

    @staticmethod
    def _list_item(edge: Follow, user) -> FollowListItem:
        return FollowListItem(
            user=UserSummary.model_validate(user),
            status=edge.status,
            since=edge.updated_at,
        )
