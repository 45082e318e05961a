# backend/travelgraph/services/conversation_service.py
"""
Conversation Service for direct messaging between two users.

A conversation's tier is derived from follow state: it starts 'active' when the
pair mutually follow at creation time and 'request' otherwise, and moves to
'active' the first time mutual follow is observed (on send, on follow accept,
on match accept, or by explicit acceptance). It never moves back.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import BlockType, ConversationStatus
from ..core.exceptions import (
    DomainException,
    ForbiddenException,
    NotFoundException,
    SelfReferenceException,
    UnauthorizedException,
    ValidationException,
)
from ..core.pairs import canonical_pair
from ..core.timezone_utils import ensure_utc, utc_now
from ..models.conversation import Conversation
from ..models.message import DirectMessage
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.block_repository import BlockRepository
from ..repositories.conversation_repository import ConversationRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.follow_repository import FollowRepository
from ..repositories.message_repository import MessageRepository
from ..repositories.trip_repository import TripRepository
from ..repositories.user_repository import UserRepository
from ..schemas.conversation import (
    ConversationListResponse,
    ConversationPreview,
    MessageResponse,
    ShareTripResult,
)
from ..schemas.user import UserSummary
from .base import BaseService

logger = logging.getLogger(__name__)


class ConversationService(BaseService):
    """
    Service for direct conversations and their messages.

    Provides:
    - Lazy conversation creation with a follow-derived tier
    - Sending with an in-transaction tier recheck
    - Per-side read state
    - Inbox listing split into chats and requests
    - Blocking
    - Sharing trip links with several users at once
    """

    def __init__(
        self,
        db: Session,
        conversation_repository: Optional[ConversationRepository] = None,
        message_repository: Optional[MessageRepository] = None,
        follow_repository: Optional[FollowRepository] = None,
        user_repository: Optional[UserRepository] = None,
        block_repository: Optional[BlockRepository] = None,
        trip_repository: Optional[TripRepository] = None,
    ):
        super().__init__(db)
        self.conversation_repository = (
            conversation_repository or RepositoryFactory.create_conversation_repository(db)
        )
        self.message_repository = (
            message_repository or RepositoryFactory.create_message_repository(db)
        )
        self.follow_repository = follow_repository or RepositoryFactory.create_follow_repository(db)
        self.user_repository = user_repository or RepositoryFactory.create_user_repository(db)
        self.block_repository = block_repository or RepositoryFactory.create_block_repository(db)
        self.trip_repository = trip_repository or RepositoryFactory.create_trip_repository(db)

    # Tier management (no commit; used inside callers' transactions)

    def _initial_status(self, user_a: str, user_b: str) -> str:
        if self.follow_repository.is_mutual(user_a, user_b):
            return ConversationStatus.ACTIVE.value
        return ConversationStatus.REQUEST.value

    def _get_or_create(self, user_a: str, user_b: str) -> Tuple[Conversation, bool]:
        pair = canonical_pair(user_a, user_b)
        conversation, created = self.conversation_repository.get_or_create(
            pair, self._initial_status(pair.low, pair.high)
        )
        if created:
            self.logger.info(
                f"Created {conversation.status} conversation {conversation.id} "
                f"between {pair.low} and {pair.high}"
            )
        return conversation, created

    def upgrade_if_mutual(self, user_a: str, user_b: str) -> bool:
        """
        Promote an existing 'request' conversation when the pair now mutually follow.

        Runs inside the caller's transaction. Returns True when a row changed.
        """
        conversation = self.conversation_repository.find_by_pair(canonical_pair(user_a, user_b))
        if conversation is None or conversation.status != ConversationStatus.REQUEST.value:
            return False
        if not self.follow_repository.is_mutual(user_a, user_b):
            return False
        changed = self.conversation_repository.upgrade_to_active(conversation.id) > 0
        if changed:
            prometheus_metrics.record_transition("conversation", "request_to_active")
            self.logger.info(f"Conversation {conversation.id} upgraded to active")
        return changed

    # Public operations

    @BaseService.measure_operation("get_or_create_conversation")
    def get_or_create(self, user_a: str, user_b: str) -> Conversation:
        """Return the pair's conversation, creating it with a follow-derived tier."""
        pair = canonical_pair(user_a, user_b)
        for user_id in pair:
            if not self.user_repository.is_active(user_id):
                raise NotFoundException("User not found.")

        with self.transaction():
            conversation, _ = self._get_or_create(pair.low, pair.high)
        return conversation

    def _participant_conversation(self, conversation_id: str, user_id: str) -> Conversation:
        conversation = self.conversation_repository.get_by_id(conversation_id)
        if conversation is None:
            raise NotFoundException("Conversation not found.")
        if not conversation.is_participant(user_id):
            raise UnauthorizedException("You are not a participant of this conversation.")
        return conversation

    def _clean_content(self, content: Optional[str]) -> str:
        text = (content or "").strip()
        if not text:
            raise ValidationException("Message cannot be empty.")
        if len(text) > settings.message_max_length:
            raise ValidationException(
                f"Message cannot exceed {settings.message_max_length} characters."
            )
        return text

    @BaseService.measure_operation("send_message")
    def send(
        self,
        conversation_id: Optional[str],
        sender_id: str,
        recipient_id: str,
        content: str,
    ) -> Tuple[Conversation, DirectMessage]:
        """
        Send a direct message, creating the conversation if needed.

        Within one transaction: resolve or create the conversation, recheck
        mutual follow for 'request' conversations, insert the message, point
        the conversation at it and clear the recipient's read marker.
        """
        text = self._clean_content(content)
        pair = canonical_pair(sender_id, recipient_id)

        if not self.user_repository.is_active(recipient_id):
            raise NotFoundException("Recipient not found.")
        if self.block_repository.exists_between(sender_id, recipient_id, BlockType.DM.value):
            raise ForbiddenException("You cannot message this user.")

        if conversation_id:
            existing = self._participant_conversation(conversation_id, sender_id)
            if not existing.is_participant(recipient_id):
                raise ValidationException("Recipient is not part of this conversation.")

        with self.transaction():
            conversation, _ = self._get_or_create(pair.low, pair.high)
            if conversation.status == ConversationStatus.REQUEST.value:
                self.upgrade_if_mutual(sender_id, recipient_id)

            message = self.message_repository.create_message(conversation.id, sender_id, text)
            self.conversation_repository.record_last_message(
                conversation.id, message, pair.side_of(recipient_id)
            )

        self.conversation_repository.refresh(conversation)
        self.log_operation(
            "send_message",
            conversation_id=conversation.id,
            sender_id=sender_id,
            recipient_id=recipient_id,
        )
        return conversation, message

    @BaseService.measure_operation("share_trip")
    def share_trip(
        self, sender_id: str, trip_id: str, recipient_ids: Sequence[str]
    ) -> ShareTripResult:
        """
        Send a link to a trip to each recipient as a direct message.

        Every message goes through :meth:`send`, so blocks and request-tier
        rules apply per recipient. A recipient that cannot be messaged is
        skipped and logged; the rest still receive the link.
        """
        if not recipient_ids:
            raise ValidationException("Choose at least one recipient.")
        sender = self.user_repository.get_active(sender_id)
        if sender is None:
            raise NotFoundException("User not found.")
        trip = self.trip_repository.get_by_id(trip_id)
        if trip is None:
            raise NotFoundException("Trip not found.")

        link = f"{settings.public_base_url}/trips/{trip.id}"
        content = f"{sender.username or 'A user'} shared a trip with you: [{trip.title}]({link})"
        active = self.user_repository.active_ids(recipient_ids)

        result = ShareTripResult()
        for recipient_id in dict.fromkeys(recipient_ids):
            if recipient_id == sender_id or recipient_id not in active:
                result.skipped.append(recipient_id)
                continue
            try:
                self.send(None, sender_id, recipient_id, content)
            except DomainException as e:
                self.logger.warning(
                    f"Skipping trip share to {recipient_id}: {e.message}",
                    extra={"trip_id": trip.id, "error_code": e.code},
                )
                result.skipped.append(recipient_id)
                continue
            result.sent_to.append(recipient_id)

        self.log_operation(
            "share_trip", trip_id=trip.id, sender_id=sender_id, sent=len(result.sent_to)
        )
        return result

    @BaseService.measure_operation("mark_conversation_read")
    def mark_read(self, conversation_id: str, user_id: str) -> None:
        conversation = self._participant_conversation(conversation_id, user_id)
        side = canonical_pair(conversation.user_id_low, conversation.user_id_high).side_of(user_id)
        with self.transaction():
            self.conversation_repository.set_last_read(conversation.id, side, utc_now())

    @BaseService.measure_operation("get_messages")
    def get_messages(
        self,
        conversation_id: str,
        user_id: str,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[DirectMessage]:
        """Messages oldest first; fetching marks the conversation read for ``user_id``."""
        conversation = self._participant_conversation(conversation_id, user_id)
        messages = self.message_repository.find_by_conversation(
            conversation.id, limit=settings.clamp_page_size(limit), offset=max(offset, 0)
        )
        side = canonical_pair(conversation.user_id_low, conversation.user_id_high).side_of(user_id)
        with self.transaction():
            self.conversation_repository.set_last_read(conversation.id, side, utc_now())
        return messages

    @BaseService.measure_operation("accept_message_request")
    def accept_request(self, conversation_id: str, user_id: str) -> Conversation:
        """Explicitly promote a 'request' conversation; already active is a no-op."""
        conversation = self._participant_conversation(conversation_id, user_id)
        if conversation.status == ConversationStatus.ACTIVE.value:
            return conversation

        with self.transaction():
            if self.conversation_repository.upgrade_to_active(conversation.id):
                prometheus_metrics.record_transition("conversation", "request_to_active")
        self.conversation_repository.refresh(conversation)
        return conversation

    @BaseService.measure_operation("list_conversations")
    def list_conversations(
        self, user_id: str, limit: Optional[int] = None, offset: int = 0
    ) -> ConversationListResponse:
        """
        Inbox previews split into chats and requests.

        Request-tier conversations only surface as requests to the recipient
        of their latest message; outbound-only requests are hidden from
        their sender.
        """
        rows = self.conversation_repository.find_for_user(
            user_id, limit=settings.clamp_page_size(limit), offset=max(offset, 0)
        )
        others = {
            user.id: user
            for user in self.user_repository.get_active_by_ids(
                conversation.get_other_user_id(user_id) for conversation, _ in rows
            )
        }

        response = ConversationListResponse()
        for conversation, last_message in rows:
            other = others.get(conversation.get_other_user_id(user_id))
            if other is None:
                continue

            unread = False
            if last_message is not None and last_message.sender_id != user_id:
                last_read = ensure_utc(conversation.last_read_at_for(user_id))
                unread = last_read is None or ensure_utc(last_message.created_at) > last_read

            preview = ConversationPreview(
                conversation_id=conversation.id,
                status=conversation.status,
                other_user=UserSummary.model_validate(other),
                last_message=(
                    MessageResponse.model_validate(last_message) if last_message else None
                ),
                unread=unread,
            )
            if conversation.status == ConversationStatus.ACTIVE.value:
                response.chats.append(preview)
            elif last_message is not None and last_message.sender_id != user_id:
                response.requests.append(preview)

        return response

    # Blocking

    @BaseService.measure_operation("block_user")
    def block(self, blocker_id: str, blocked_id: str, block_type: str = BlockType.DM.value) -> bool:
        if blocker_id == blocked_id:
            raise SelfReferenceException("You cannot block yourself.")
        if not self.user_repository.is_active(blocked_id):
            raise NotFoundException("User not found.")
        try:
            kind = BlockType(block_type)
        except ValueError:
            raise ValidationException(f"Unknown block type: {block_type}")

        with self.transaction():
            created = self.block_repository.add(blocker_id, blocked_id, kind.value)
        if created:
            self.log_operation("block_user", blocker_id=blocker_id, blocked_id=blocked_id)
        return created

    @BaseService.measure_operation("unblock_user")
    def unblock(
        self, blocker_id: str, blocked_id: str, block_type: str = BlockType.DM.value
    ) -> bool:
        with self.transaction():
            removed = self.block_repository.remove(blocker_id, blocked_id, block_type)
        return removed > 0
