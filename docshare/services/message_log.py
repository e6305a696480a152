import logging

from docshare.schemas.conversation import ConversationIdentity
from docshare.schemas.message import MessageCreate, MessageRead, MessageType
from docshare.schemas.profile import ProfileRead
from docshare.store import (
    And,
    EntityStoreClient,
    EntityStoreError,
    Eq,
    Filter,
    In,
    Or,
    Order,
)

from .exceptions import StoreError, ValidationError

logger = logging.getLogger(__name__)


def conversation_filter(conversation: ConversationIdentity, self_id: str) -> Filter:
    """Filter selecting the messages that belong to ``conversation`` as seen by ``self_id``."""
    if conversation.is_group:
        return Eq("group_id", conversation.id)
    return Or(
        And(Eq("sender_id", conversation.id), Eq("receiver_id", self_id)),
        And(Eq("sender_id", self_id), Eq("receiver_id", conversation.id)),
    )


def validate_message(message: MessageCreate) -> None:
    if (message.receiver_id is None) == (message.group_id is None):
        raise ValidationError(
            "A message needs exactly one of receiver_id or group_id."
        )
    if message.message_type == MessageType.TEXT and not message.content.strip():
        raise ValidationError("A text message cannot be empty.")
    if message.message_type == MessageType.FILE and (
        not message.file_name or not message.file_url or message.file_size is None
    ):
        raise ValidationError(
            "A file message needs file_name, file_url and file_size."
        )


class MessageLog:
    """Ordered, append-only message history of direct and group conversations."""

    def __init__(self, store: EntityStoreClient):
        self.store = store

    async def load(
        self, conversation: ConversationIdentity, self_id: str
    ) -> list[MessageRead]:
        """Full history of ``conversation``, oldest first, with sender profiles resolved."""
        try:
            rows = await self.store.query(
                "messages",
                conversation_filter(conversation, self_id),
                order_by=[Order("created_at")],
            )
            sender_ids = sorted({row["sender_id"] for row in rows})
            senders = {}
            if sender_ids:
                profile_rows = await self.store.query("profiles", In("id", sender_ids))
                senders = {
                    row["id"]: ProfileRead.model_validate(row) for row in profile_rows
                }
        except EntityStoreError as e:
            logger.error(
                f"Store error loading messages for {conversation.type.value} "
                f"{conversation.id}: {e}",
                exc_info=True,
            )
            raise StoreError("Failed to load messages due to a store error.") from e

        logger.debug(
            f"Loaded {len(rows)} messages for {conversation.type.value} {conversation.id}"
        )
        return [
            MessageRead.model_validate({**row, "sender": senders.get(row["sender_id"])})
            for row in rows
        ]

    async def append(self, message: MessageCreate) -> MessageRead:
        """Persists ``message`` and returns the stored row with its id and created_at."""
        validate_message(message)

        row = message.model_dump(mode="json")
        try:
            stored = await self.store.insert("messages", row)
        except EntityStoreError as e:
            logger.error(
                f"Store error appending message from {message.sender_id}: {e}",
                exc_info=True,
            )
            raise StoreError("Failed to send message due to a store error.") from e

        logger.info(
            f"Message {stored['id']} ({message.message_type.value}) appended by "
            f"{message.sender_id}"
        )
        return MessageRead.model_validate(stored)
