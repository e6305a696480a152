import asyncio
import logging
from typing import Iterable

from docshare.auth import AuthProvider
from docshare.core.config import Settings
from docshare.schemas.attachment import AttachmentFile
from docshare.schemas.conversation import ConversationIdentity
from docshare.schemas.friendship import FriendshipRead, PendingRequest
from docshare.schemas.group import GroupRead
from docshare.schemas.message import MessageCreate, MessageRead, MessageType
from docshare.schemas.profile import ProfileRead
from docshare.schemas.session import SessionSnapshot
from docshare.storage import AttachmentService
from docshare.store import EntityStoreClient

from .attachment_pipeline import MAX_FILE_SIZE, AttachmentPipeline
from .exceptions import ServiceError
from .message_log import MessageLog
from .realtime_reconciler import RealtimeReconciler
from .relationship_directory import RelationshipDirectory
from .search_resolver import DebouncedSearch, SearchResolver

logger = logging.getLogger(__name__)


class ConversationSession:
    """One signed-in user's view of their conversations.

    Holds the selected conversation and its messages, plus friends, groups and
    pending requests, and wires the directory, message log, attachment
    pipeline and realtime reconciler together. Every load replaces its list
    wholesale, so overlapping operations never see a half-updated list.
    """

    def __init__(
        self,
        store: EntityStoreClient,
        attachments: AttachmentService,
        auth: AuthProvider,
        *,
        max_file_size: int = MAX_FILE_SIZE,
        upload_cache_control: str | None = "3600",
        search_limit: int = 10,
        search_debounce: float = 0.25,
    ):
        self.auth = auth
        self.user_id = auth.current_user_id
        self.directory = RelationshipDirectory(store)
        self.message_log = MessageLog(store)
        self.attachment_pipeline = AttachmentPipeline(
            attachments,
            self.message_log,
            max_file_size=max_file_size,
            cache_control=upload_cache_control,
        )
        self.search_resolver = SearchResolver(store)
        self.debounced_search = DebouncedSearch(
            self.search_resolver, delay=search_debounce
        )
        self.search_limit = search_limit
        self.reconciler = RealtimeReconciler(store, self._reload_messages)

        self.active_conversation: ConversationIdentity | None = None
        self.messages: list[MessageRead] = []
        self.friends: list[ProfileRead] = []
        self.groups: list[GroupRead] = []
        self.pending_requests: list[PendingRequest] = []
        self.search_results: list[ProfileRead] = []
        self.send_in_flight = False
        self._switch_lock = asyncio.Lock()

    @classmethod
    def from_settings(
        cls,
        store: EntityStoreClient,
        attachments: AttachmentService,
        auth: AuthProvider,
        settings: Settings,
    ) -> "ConversationSession":
        return cls(
            store,
            attachments,
            auth,
            max_file_size=settings.MAX_UPLOAD_BYTES,
            upload_cache_control=settings.UPLOAD_CACHE_CONTROL,
            search_limit=settings.SEARCH_RESULT_LIMIT,
            search_debounce=settings.SEARCH_DEBOUNCE_SECONDS,
        )

    async def refresh_relationships(self) -> None:
        self.friends, self.groups, self.pending_requests = await asyncio.gather(
            self.directory.list_friends(self.user_id),
            self.directory.list_groups(self.user_id),
            self.directory.list_pending_requests(self.user_id),
        )

    async def select_conversation(
        self, conversation: ConversationIdentity | None
    ) -> list[MessageRead]:
        """Switches the active conversation: teardown old, subscribe new, load."""
        async with self._switch_lock:
            await self.reconciler.deactivate()
            self.active_conversation = None
            self.messages = []
            if conversation is None:
                return self.messages

            await self.reconciler.activate(conversation)
            self.active_conversation = conversation
            await self._reload_messages(conversation)
            return self.messages

    async def open_direct_conversation(self, profile_id: str) -> list[MessageRead]:
        """Starts (or resumes) a direct chat, e.g. with a search result."""
        return await self.select_conversation(ConversationIdentity.friend(profile_id))

    async def _reload_messages(self, conversation: ConversationIdentity) -> None:
        messages = await self.message_log.load(conversation, self.user_id)
        if conversation != self.active_conversation:
            logger.debug(f"Dropping messages loaded for inactive {conversation.id}")
            return
        self.messages = messages

    async def _reload_after_send(self, conversation: ConversationIdentity) -> None:
        # The send itself succeeded; a later event or reload will catch up
        try:
            await self._reload_messages(conversation)
        except ServiceError as e:
            logger.warning(f"Reload after send to {conversation.id} failed: {e}")

    async def send_text(self, content: str) -> MessageRead | None:
        """Sends a text message; returns None when the send was skipped."""
        conversation = self.active_conversation
        if self.send_in_flight or conversation is None or not content.strip():
            logger.debug(f"Skipping text send for user {self.user_id}")
            return None

        self.send_in_flight = True
        try:
            message = await self.message_log.append(
                MessageCreate(
                    sender_id=self.user_id,
                    message_type=MessageType.TEXT,
                    content=content,
                    **conversation.target_fields(),
                )
            )
            await self._reload_after_send(conversation)
        finally:
            self.send_in_flight = False
        return message

    async def send_file(
        self, file: AttachmentFile, caption: str = ""
    ) -> MessageRead | None:
        conversation = self.active_conversation
        if self.send_in_flight or conversation is None:
            logger.debug(f"Skipping file send for user {self.user_id}")
            return None

        self.send_in_flight = True
        try:
            message = await self.attachment_pipeline.send(
                file, caption, conversation, self.user_id
            )
            await self._reload_after_send(conversation)
        finally:
            self.send_in_flight = False
        return message

    async def send_pasted(
        self, files: Iterable[AttachmentFile], caption: str = ""
    ) -> list[MessageRead]:
        """Sends the pasted items that are images, one message each."""
        sent = []
        for file in files:
            if not file.is_image:
                continue
            message = await self.send_file(file, caption)
            if message is not None:
                sent.append(message)
        return sent

    async def accept_request(self, request_id: str) -> FriendshipRead:
        friendship = await self.directory.accept_request(
            request_id, addressee_id=self.user_id
        )
        self.friends, self.pending_requests = await asyncio.gather(
            self.directory.list_friends(self.user_id),
            self.directory.list_pending_requests(self.user_id),
        )
        return friendship

    async def send_friend_request(self, addressee_id: str) -> FriendshipRead:
        return await self.directory.send_request(self.user_id, addressee_id)

    async def search(self, query: str) -> list[ProfileRead] | None:
        """Debounced profile search; None when a newer query superseded this one."""
        results = await self.debounced_search.submit(
            query, self.search_limit, exclude_user_id=self.user_id
        )
        if results is not None:
            self.search_results = results
        return results

    async def close(self) -> None:
        async with self._switch_lock:
            await self.reconciler.deactivate()
            self.active_conversation = None
            self.messages = []

    async def sign_out(self) -> None:
        await self.close()
        await self.auth.sign_out()

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            user_id=self.user_id,
            active_conversation=self.active_conversation,
            messages=self.messages,
            friends=self.friends,
            groups=self.groups,
            pending_requests=self.pending_requests,
            search_results=self.search_results,
            send_in_flight=self.send_in_flight,
        )
