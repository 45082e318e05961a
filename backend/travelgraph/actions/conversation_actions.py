# backend/travelgraph/actions/conversation_actions.py
"""Direct messaging actions."""

from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from ..core.enums import BlockType
from ..schemas.conversation import (
    ConversationListResponse,
    ConversationResponse,
    MessageResponse,
    SendMessageResult,
    ShareTripResult,
)
from ..schemas.results import ActionResult
from ..services.conversation_service import ConversationService
from .base import run_action


def get_or_create_conversation(
    db: Session, user_id: str, other_user_id: str
) -> ActionResult[ConversationResponse]:
    return run_action(
        "get_or_create_conversation",
        lambda: ConversationResponse.model_validate(
            ConversationService(db).get_or_create(user_id, other_user_id)
        ),
    )


def send_message(
    db: Session,
    sender_id: str,
    recipient_id: str,
    content: str,
    conversation_id: Optional[str] = None,
) -> ActionResult[SendMessageResult]:
    def _send() -> SendMessageResult:
        conversation, message = ConversationService(db).send(
            conversation_id, sender_id, recipient_id, content
        )
        return SendMessageResult(
            conversation=ConversationResponse.model_validate(conversation),
            message=MessageResponse.model_validate(message),
        )

    return run_action("send_message", _send, "Message sent.")


def share_trip(
    db: Session, sender_id: str, trip_id: str, recipient_ids: Sequence[str]
) -> ActionResult[ShareTripResult]:
    return run_action(
        "share_trip",
        lambda: ConversationService(db).share_trip(sender_id, trip_id, recipient_ids),
        "Trip shared.",
    )


def get_messages(
    db: Session,
    conversation_id: str,
    user_id: str,
    limit: Optional[int] = None,
    offset: int = 0,
) -> ActionResult[List[MessageResponse]]:
    return run_action(
        "get_messages",
        lambda: [
            MessageResponse.model_validate(message)
            for message in ConversationService(db).get_messages(
                conversation_id, user_id, limit, offset
            )
        ],
    )


def mark_conversation_read(db: Session, conversation_id: str, user_id: str) -> ActionResult[None]:
    return run_action(
        "mark_conversation_read",
        lambda: ConversationService(db).mark_read(conversation_id, user_id),
    )


def accept_message_request(
    db: Session, conversation_id: str, user_id: str
) -> ActionResult[ConversationResponse]:
    return run_action(
        "accept_message_request",
        lambda: ConversationResponse.model_validate(
            ConversationService(db).accept_request(conversation_id, user_id)
        ),
        "Message request accepted.",
    )


def list_conversations(
    db: Session, user_id: str, limit: Optional[int] = None, offset: int = 0
) -> ActionResult[ConversationListResponse]:
    return run_action(
        "list_conversations",
        lambda: ConversationService(db).list_conversations(user_id, limit, offset),
    )


def block_user(
    db: Session, blocker_id: str, blocked_id: str, block_type: str = BlockType.DM.value
) -> ActionResult[bool]:
    return run_action(
        "block_user",
        lambda: ConversationService(db).block(blocker_id, blocked_id, block_type),
        "User blocked.",
    )


def unblock_user(
    db: Session, blocker_id: str, blocked_id: str, block_type: str = BlockType.DM.value
) -> ActionResult[bool]:
    return run_action(
        "unblock_user",
        lambda: ConversationService(db).unblock(blocker_id, blocked_id, block_type),
        "User unblocked.",
    )
