import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


class AuthProvider(ABC):
    """Authentication collaborator: who the current user is, and signing them out."""

    @property
    @abstractmethod
    def current_user_id(self) -> str: ...

    @abstractmethod
    async def sign_out(self) -> None: ...


class TrustedIdentityAuth(AuthProvider):
    """Identity already established upstream, e.g. by an authenticating proxy.

    ``on_sign_out`` lets the host drop whatever it keeps for the user.
    """

    def __init__(
        self,
        user_id: str,
        on_sign_out: Callable[[str], Awaitable[None]] | None = None,
    ):
        self._user_id = user_id
        self._on_sign_out = on_sign_out
        self.signed_out = False

    @property
    def current_user_id(self) -> str:
        return self._user_id

    async def sign_out(self) -> None:
        self.signed_out = True
        logger.info(f"User {self._user_id} signed out")
        if self._on_sign_out is not None:
            await self._on_sign_out(self._user_id)
