import logging
from typing import Callable

from .conversation_session import ConversationSession

logger = logging.getLogger(__name__)


class SessionProvider:
    """
    Keeps one ConversationSession per signed-in user.
    Sessions are created on first use and reused until discarded.
    """

    _sessions: dict[str, ConversationSession] = {}

    @classmethod
    def get_session(
        cls, user_id: str, factory: Callable[[], ConversationSession]
    ) -> ConversationSession:
        """Retrieves the user's session, creating it with ``factory`` if needed."""
        if user_id not in cls._sessions:
            try:
                logger.debug(f"Creating conversation session for user {user_id}")
                cls._sessions[user_id] = factory()
            except Exception as e:
                logger.error(
                    f"Failed to create conversation session for user {user_id}: {e}",
                    exc_info=True,
                )
                raise
        return cls._sessions[user_id]

    @classmethod
    async def discard(cls, user_id: str) -> None:
        """Closes and forgets the user's session, if any."""
        session = cls._sessions.pop(user_id, None)
        if session is not None:
            await session.close()
            logger.debug(f"Discarded conversation session for user {user_id}")

    @classmethod
    async def close_all(cls) -> None:
        for user_id in list(cls._sessions):
            await cls.discard(user_id)

    @classmethod
    def clear(cls) -> None:
        """
        Forgets all sessions without closing them.
        Primarily useful for testing to ensure fresh sessions for each test case.
        """
        logger.debug("Clearing all cached conversation sessions.")
        cls._sessions.clear()
