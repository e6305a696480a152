import logging

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from docshare.api.common.base_router import BaseRouter
from docshare.api.dependencies import get_conversation_session
from docshare.logic.chat_processing import (
    handle_select_conversation,
    handle_send_file,
    handle_send_text,
)
from docshare.schemas.conversation import ConversationIdentity
from docshare.schemas.friendship import FriendRequestCreate, FriendshipRead
from docshare.schemas.message import MessageSendRequest, SendResult
from docshare.schemas.search import SearchResponse
from docshare.schemas.session import SessionSnapshot
from docshare.services.conversation_session import ConversationSession

logger = logging.getLogger(__name__)

chat_api_router = APIRouter(prefix="/chat", tags=["chat"])
router = BaseRouter(chat_api_router)


@router.get("/state", response_model=SessionSnapshot)
async def get_state(
    session: ConversationSession = Depends(get_conversation_session),
):
    """Current snapshot of the caller's session, without reloading anything."""
    return session.snapshot()


@router.post("/refresh", response_model=SessionSnapshot)
async def refresh_relationships(
    session: ConversationSession = Depends(get_conversation_session),
):
    await session.refresh_relationships()
    return session.snapshot()


@router.put("/conversation", response_model=SessionSnapshot)
async def select_conversation(
    conversation: ConversationIdentity,
    session: ConversationSession = Depends(get_conversation_session),
):
    return await handle_select_conversation(conversation, session)


@router.delete("/conversation", response_model=SessionSnapshot)
async def clear_conversation(
    session: ConversationSession = Depends(get_conversation_session),
):
    return await handle_select_conversation(None, session)


@router.post("/messages", response_model=SendResult)
async def send_message(
    request: MessageSendRequest,
    session: ConversationSession = Depends(get_conversation_session),
):
    return await handle_send_text(request.content, session)


@router.post("/files", response_model=SendResult)
async def send_file(
    file: UploadFile = File(...),
    caption: str = Form(""),
    session: ConversationSession = Depends(get_conversation_session),
):
    return await handle_send_file(file, caption, session)


@router.post(
    "/requests", response_model=FriendshipRead, status_code=status.HTTP_201_CREATED
)
async def send_friend_request(
    request: FriendRequestCreate,
    session: ConversationSession = Depends(get_conversation_session),
):
    return await session.send_friend_request(request.addressee_id)


@router.post("/requests/{request_id}/accept", response_model=SessionSnapshot)
async def accept_friend_request(
    request_id: str,
    session: ConversationSession = Depends(get_conversation_session),
):
    await session.accept_request(request_id)
    return session.snapshot()


@router.get("/search", response_model=SearchResponse)
async def search_profiles(
    q: str = Query(""),
    session: ConversationSession = Depends(get_conversation_session),
):
    results = await session.search(q)
    return SearchResponse(
        query=q, results=results or [], superseded=results is None
    )


@router.post("/sign-out", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(
    session: ConversationSession = Depends(get_conversation_session),
):
    await session.sign_out()
