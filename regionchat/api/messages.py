from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from regionchat.core.config import settings
from regionchat.core.exceptions import InvalidInputException
from regionchat.dependencies.auth_dependencies import get_current_user
from regionchat.dependencies.service_dependencies import get_chat_service, get_reaction_service
from regionchat.models.user import User
from regionchat.schemas.message import MessageResponse, ReactionRequest, ReactionsResponse
from regionchat.services.chat_service import ChatService
from regionchat.services.reaction_service import ReactionService

router = APIRouter(prefix="/api", tags=["messages"])

@router.get("/messages", response_model=List[MessageResponse])
async def get_messages(
    limit: int = Query(settings.history_limit, ge=1, le=500),
    chat_service: ChatService = Depends(get_chat_service),
):
    """
    Most recent public messages, oldest first.
    """
    return await chat_service.get_messages(limit)

@router.get("/private-messages", response_model=List[MessageResponse])
async def get_private_messages(
    username: Optional[str] = None,
    recipient: Optional[str] = None,
    limit: int = Query(settings.history_limit, ge=1, le=500),
    chat_service: ChatService = Depends(get_chat_service),
):
    """
    Private thread between two users, oldest first.
    """
    if not username or not recipient:
        raise InvalidInputException(
            detail="Both username and recipient are required query parameters"
        )
    return await chat_service.get_private_messages(username, recipient, limit)

@router.get("/messages/{message_id}/reactions", response_model=ReactionsResponse)
async def get_reactions(
    message_id: str,
    reaction_service: ReactionService = Depends(get_reaction_service),
):
    reactions = await reaction_service.get_reactions(message_id)
    return ReactionsResponse(message_id=message_id, reactions=reactions)

@router.post("/messages/{message_id}/reactions", response_model=ReactionsResponse)
async def add_reaction(
    message_id: str,
    request: ReactionRequest,
    current_user: User = Depends(get_current_user),
    reaction_service: ReactionService = Depends(get_reaction_service),
):
    """
    React to a message as the current user; all connected clients are updated.
    """
    reactions = await reaction_service.add_reaction(message_id, current_user.username, request.emoji)
    return ReactionsResponse(message_id=message_id, reactions=reactions)

@router.delete("/messages/{message_id}/reactions", response_model=ReactionsResponse)
async def remove_reaction(
    message_id: str,
    emoji: str = Query(..., min_length=1, max_length=32),
    current_user: User = Depends(get_current_user),
    reaction_service: ReactionService = Depends(get_reaction_service),
):
    reactions = await reaction_service.remove_reaction(message_id, current_user.username, emoji)
    return ReactionsResponse(message_id=message_id, reactions=reactions)
