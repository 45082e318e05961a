# backend/travelgraph/routes/v1/conversations.py
"""
Conversation routes - API v1

Endpoints:
    GET /                                  → Inbox split into chats and requests
    POST /messages                         → Send a direct message
    POST /share-trip                       → Send a trip link to several users
    POST /with/{other_user_id}             → Get or create the conversation with a user
    GET /{conversation_id}/messages        → Messages, oldest first (marks read)
    POST /{conversation_id}/read           → Mark read
    POST /{conversation_id}/accept         → Accept a message request
    POST /blocks                           → Block a user
    DELETE /blocks/{blocked_id}            → Unblock a user
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from ...actions import conversation_actions
from ...core.enums import BlockType
from ...database import get_db
from ...dependencies.auth import get_current_user_id
from ...schemas.conversation import (
    BlockRequest,
    ConversationListResponse,
    ConversationResponse,
    MessageResponse,
    SendMessageRequest,
    SendMessageResult,
    ShareTripRequest,
    ShareTripResult,
)
from ...schemas.results import ActionResult
from ._results import ULID_PATH_PATTERN, unwrap

logger = logging.getLogger(__name__)

router = APIRouter(tags=["conversations-v1"])


@router.get("", response_model=ActionResult[ConversationListResponse])
async def list_conversations(
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[ConversationListResponse]:
    result = await asyncio.to_thread(
        conversation_actions.list_conversations, db, user_id, limit, offset
    )
    return unwrap(result)


@router.post("/messages", response_model=ActionResult[SendMessageResult])
async def send_message(
    body: SendMessageRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[SendMessageResult]:
    result = await asyncio.to_thread(
        conversation_actions.send_message,
        db,
        user_id,
        body.recipient_id,
        body.content,
        body.conversation_id,
    )
    return unwrap(result)


@router.post("/share-trip", response_model=ActionResult[ShareTripResult])
async def share_trip(
    body: ShareTripRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[ShareTripResult]:
    result = await asyncio.to_thread(
        conversation_actions.share_trip, db, user_id, body.trip_id, body.recipient_ids
    )
    return unwrap(result)


@router.post("/blocks", response_model=ActionResult[bool])
async def block_user(
    body: BlockRequest,
    block_type: BlockType = Query(BlockType.DM),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[bool]:
    result = await asyncio.to_thread(
        conversation_actions.block_user, db, user_id, body.blocked_id, block_type.value
    )
    return unwrap(result)


@router.delete("/blocks/{blocked_id}", response_model=ActionResult[bool])
async def unblock_user(
    blocked_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    block_type: BlockType = Query(BlockType.DM),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[bool]:
    result = await asyncio.to_thread(
        conversation_actions.unblock_user, db, user_id, blocked_id, block_type.value
    )
    return unwrap(result)


@router.post("/with/{other_user_id}", response_model=ActionResult[ConversationResponse])
async def get_or_create_conversation(
    other_user_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[ConversationResponse]:
    result = await asyncio.to_thread(
        conversation_actions.get_or_create_conversation, db, user_id, other_user_id
    )
    return unwrap(result)


@router.get("/{conversation_id}/messages", response_model=ActionResult[List[MessageResponse]])
async def get_messages(
    conversation_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[List[MessageResponse]]:
    result = await asyncio.to_thread(
        conversation_actions.get_messages, db, conversation_id, user_id, limit, offset
    )
    return unwrap(result)


@router.post("/{conversation_id}/read", response_model=ActionResult[None])
async def mark_conversation_read(
    conversation_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[None]:
    result = await asyncio.to_thread(
        conversation_actions.mark_conversation_read, db, conversation_id, user_id
    )
    return unwrap(result)


@router.post("/{conversation_id}/accept", response_model=ActionResult[ConversationResponse])
async def accept_message_request(
    conversation_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[ConversationResponse]:
    result = await asyncio.to_thread(
        conversation_actions.accept_message_request, db, conversation_id, user_id
    )
    return unwrap(result)
