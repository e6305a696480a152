import logging
import time
from typing import Callable

from docshare.schemas.attachment import AttachmentFile, UploadedObject
from docshare.schemas.conversation import ConversationIdentity
from docshare.schemas.message import MessageCreate, MessageRead, MessageType
from docshare.storage import AttachmentService, ObjectConflictError, ObjectStorageError

from .exceptions import AttachmentError, FileTooLargeError, ServiceError
from .message_log import MessageLog

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 100 * 1024 * 1024
DEFAULT_FILE_CAPTION = "Shared a file"


def _now_millis() -> int:
    return time.time_ns() // 1_000_000


def build_storage_key(sender_id: str, file_name: str, timestamp_millis: int) -> str:
    """``{sender}/{millis}.{ext}``; ``ext`` is the whole name when it has no dot."""
    extension = file_name.rsplit(".", 1)[-1]
    return f"{sender_id}/{timestamp_millis}.{extension}"


class AttachmentPipeline:
    """Validates, uploads and links a file to an outgoing message.

    An object uploaded before a failed append stays in storage as an orphan.
    """

    def __init__(
        self,
        attachments: AttachmentService,
        message_log: MessageLog,
        *,
        max_file_size: int = MAX_FILE_SIZE,
        cache_control: str | None = "3600",
        clock: Callable[[], int] = _now_millis,
    ):
        self.attachments = attachments
        self.message_log = message_log
        self.max_file_size = max_file_size
        self.cache_control = cache_control
        self.clock = clock

    async def upload(self, file: AttachmentFile, sender_id: str) -> UploadedObject:
        key = build_storage_key(sender_id, file.name, self.clock())
        try:
            await self.attachments.put(
                key,
                file.data,
                overwrite=False,
                content_type=file.content_type,
                cache_control=self.cache_control,
            )
            url = await self.attachments.public_url_of(key)
        except ObjectConflictError as e:
            logger.warning(f"Storage key collision for '{key}'")
            raise AttachmentError(f"An object already exists at '{key}'.") from e
        except ObjectStorageError as e:
            logger.error(f"Upload of '{file.name}' failed: {e}", exc_info=True)
            raise AttachmentError(f"Failed to upload '{file.name}'.") from e

        return UploadedObject(path=key, url=url)

    async def send(
        self,
        file: AttachmentFile,
        caption: str,
        conversation: ConversationIdentity,
        sender_id: str,
    ) -> MessageRead:
        if file.size > self.max_file_size:
            raise FileTooLargeError(
                f"'{file.name}' is {file.size} bytes; the limit is "
                f"{self.max_file_size} bytes."
            )

        uploaded = await self.upload(file, sender_id)

        message = MessageCreate(
            sender_id=sender_id,
            message_type=MessageType.FILE,
            content=caption or DEFAULT_FILE_CAPTION,
            file_name=file.name,
            file_url=uploaded.url,
            file_size=file.size,
            **conversation.target_fields(),
        )
        try:
            stored = await self.message_log.append(message)
        except ServiceError as e:
            logger.error(
                f"Uploaded '{uploaded.path}' but could not link it to a message: {e}"
            )
            raise AttachmentError(
                f"Uploaded '{file.name}' but failed to send the message: {e.message}"
            ) from e

        logger.info(f"File '{file.name}' sent as message {stored.id}")
        return stored
