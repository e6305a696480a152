import logging

from fastapi import UploadFile

from docshare.schemas.attachment import AttachmentFile
from docshare.schemas.conversation import ConversationIdentity
from docshare.schemas.message import SendResult
from docshare.schemas.session import SessionSnapshot
from docshare.services.conversation_session import ConversationSession
from docshare.services.exceptions import FileTooLargeError, ServiceError

logger = logging.getLogger(__name__)


async def handle_select_conversation(
    conversation: ConversationIdentity | None,
    session: ConversationSession,
) -> SessionSnapshot:
    """
    Switches the caller's active conversation and returns the refreshed state.

    Raises:
        StoreError: If subscribing or loading the history fails.
    """
    target = f"{conversation.type.value} {conversation.id}" if conversation else "none"
    logger.debug(f"Handler: User {session.user_id} selecting conversation {target}")
    await session.select_conversation(conversation)
    return session.snapshot()


async def handle_send_text(content: str, session: ConversationSession) -> SendResult:
    message = await session.send_text(content)
    if message is None:
        logger.info(f"Handler: Text send skipped for user {session.user_id}")
    return SendResult(sent=message is not None, message=message)


async def handle_send_file(
    upload: UploadFile, caption: str, session: ConversationSession
) -> SendResult:
    """
    Reads an uploaded file and sends it through the attachment pipeline.

    The declared upload size is checked before the body is read; the pipeline
    checks the actual size again.

    Raises:
        FileTooLargeError: If the file exceeds the size limit.
        AttachmentError: If uploading or linking the file fails.
    """
    max_size = session.attachment_pipeline.max_file_size
    if upload.size is not None and upload.size > max_size:
        raise FileTooLargeError(
            f"'{upload.filename}' is {upload.size} bytes; the limit is {max_size} bytes."
        )

    try:
        data = await upload.read()
    except OSError as e:
        logger.error(f"Handler: Could not read upload '{upload.filename}': {e}")
        raise ServiceError("Could not read the uploaded file.", status_code=400) from e
    finally:
        await upload.close()

    file = AttachmentFile(
        name=upload.filename or "upload",
        data=data,
        content_type=upload.content_type,
    )
    message = await session.send_file(file, caption)
    if message is None:
        logger.info(f"Handler: File send skipped for user {session.user_id}")
    return SendResult(sent=message is not None, message=message)
