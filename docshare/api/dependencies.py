from fastapi import Depends, Header

from docshare.api.common.exceptions import UnauthorizedError
from docshare.auth import TrustedIdentityAuth
from docshare.core.config import settings
from docshare.db import entity_store
from docshare.services.conversation_session import ConversationSession
from docshare.services.provider import SessionProvider
from docshare.storage import AttachmentService, LocalAttachmentService
from docshare.store import EntityStoreClient

attachment_service = LocalAttachmentService(
    root=settings.STORAGE_ROOT,
    public_base_url=settings.PUBLIC_STORAGE_URL,
    bucket=settings.STORAGE_BUCKET,
)


def get_entity_store() -> EntityStoreClient:
    return entity_store


def get_attachment_service() -> AttachmentService:
    return attachment_service


async def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """User id asserted by the authenticating proxy in front of this service."""
    if not x_user_id:
        raise UnauthorizedError("Missing X-User-Id header.")
    return x_user_id


def get_conversation_session(
    user_id: str = Depends(get_current_user_id),
    store: EntityStoreClient = Depends(get_entity_store),
    attachments: AttachmentService = Depends(get_attachment_service),
) -> ConversationSession:
    """Provides the caller's ConversationSession, creating it on first use."""
    return SessionProvider.get_session(
        user_id,
        lambda: ConversationSession.from_settings(
            store,
            attachments,
            TrustedIdentityAuth(user_id, on_sign_out=SessionProvider.discard),
            settings,
        ),
    )
