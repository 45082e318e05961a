"""Direct conversation and message schemas."""

from typing import List, Optional

from pydantic import Field

from ..core.enums import ConversationStatus
from .base import OptionalUtcDatetime, StandardizedModel, StrictModel, UtcDatetime
from .user import UserSummary


class SendMessageRequest(StrictModel):
    recipient_id: str
    content: str = Field(..., min_length=1)
    conversation_id: Optional[str] = None


class BlockRequest(StrictModel):
    blocked_id: str


class ConversationResponse(StandardizedModel):
    id: str
    user_id_low: str
    user_id_high: str
    status: ConversationStatus
    last_message_id: Optional[str] = None
    last_message_at: OptionalUtcDatetime = None
    created_at: UtcDatetime


class MessageResponse(StandardizedModel):
    id: str
    conversation_id: str
    sender_id: str
    content: str
    created_at: UtcDatetime


class SendMessageResult(StandardizedModel):
    conversation: ConversationResponse
    message: MessageResponse


class ConversationPreview(StandardizedModel):
    conversation_id: str
    status: ConversationStatus
    other_user: UserSummary
    last_message: Optional[MessageResponse] = None
    unread: bool = False


class ConversationListResponse(StandardizedModel):
    chats: List[ConversationPreview] = Field(default_factory=list)
    requests: List[ConversationPreview] = Field(default_factory=list)


class ShareTripRequest(StrictModel):
    trip_id: str
    recipient_ids: List[str] = Field(..., min_length=1, max_length=50)


class ShareTripResult(StandardizedModel):
    sent_to: List[str] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)
