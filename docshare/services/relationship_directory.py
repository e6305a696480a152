import logging
from typing import Iterable

from docshare.schemas.friendship import FriendshipRead, FriendshipStatus, PendingRequest
from docshare.schemas.group import GroupRead
from docshare.schemas.profile import ProfileRead
from docshare.store import And, EntityStoreClient, EntityStoreError, Eq, In, Or, Order

from .exceptions import (
    ConflictError,
    NotAuthorizedError,
    NotFoundError,
    StoreError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class RelationshipDirectory:
    """Friendships and group memberships of a user.

    Nothing is cached: callers re-run the list operations to observe a change.
    """

    def __init__(self, store: EntityStoreClient):
        self.store = store

    async def _profiles_by_id(self, ids: Iterable[str]) -> dict[str, ProfileRead]:
        unique_ids = sorted(set(ids))
        if not unique_ids:
            return {}
        rows = await self.store.query("profiles", In("id", unique_ids))
        return {row["id"]: ProfileRead.model_validate(row) for row in rows}

    async def list_friends(self, user_id: str) -> list[ProfileRead]:
        """Profiles on the other side of every accepted friendship of ``user_id``."""
        try:
            rows = await self.store.query(
                "friendships",
                And(
                    Or(Eq("requester_id", user_id), Eq("addressee_id", user_id)),
                    Eq("status", FriendshipStatus.ACCEPTED.value),
                ),
                order_by=[Order("created_at")],
            )
            friend_ids = [
                FriendshipRead.model_validate(row).counterpart_of(user_id)
                for row in rows
            ]
            profiles = await self._profiles_by_id(friend_ids)
        except EntityStoreError as e:
            logger.error(
                f"Store error listing friends for user {user_id}: {e}", exc_info=True
            )
            raise StoreError("Failed to list friends due to a store error.") from e

        return [
            profiles[friend_id] for friend_id in friend_ids if friend_id in profiles
        ]

    async def list_groups(self, user_id: str) -> list[GroupRead]:
        try:
            memberships = await self.store.query(
                "group_members", Eq("user_id", user_id)
            )
            group_ids = [row["group_id"] for row in memberships]
            if not group_ids:
                return []
            rows = await self.store.query(
                "groups", In("id", group_ids), order_by=[Order("name")]
            )
        except EntityStoreError as e:
            logger.error(
                f"Store error listing groups for user {user_id}: {e}", exc_info=True
            )
            raise StoreError("Failed to list groups due to a store error.") from e

        return [GroupRead.model_validate(row) for row in rows]

    async def list_pending_requests(self, user_id: str) -> list[PendingRequest]:
        """Friend requests addressed to ``user_id`` that are still pending."""
        try:
            rows = await self.store.query(
                "friendships",
                And(
                    Eq("addressee_id", user_id),
                    Eq("status", FriendshipStatus.PENDING.value),
                ),
                order_by=[Order("created_at", ascending=False)],
            )
            requests = [FriendshipRead.model_validate(row) for row in rows]
            profiles = await self._profiles_by_id(r.requester_id for r in requests)
        except EntityStoreError as e:
            logger.error(
                f"Store error listing friend requests for user {user_id}: {e}",
                exc_info=True,
            )
            raise StoreError(
                "Failed to list friend requests due to a store error."
            ) from e

        return [
            PendingRequest(
                request_id=request.id,
                from_profile=profiles[request.requester_id],
                created_at=request.created_at,
            )
            for request in requests
            if request.requester_id in profiles
        ]

    async def accept_request(
        self, request_id: str, *, addressee_id: str | None = None
    ) -> FriendshipRead:
        """Moves a friend request from pending to accepted.

        When ``addressee_id`` is given, only that profile may accept. Accepting
        an already accepted request changes nothing.
        """
        try:
            rows = await self.store.query("friendships", Eq("id", request_id), limit=1)
            if not rows:
                raise NotFoundError(f"Friend request '{request_id}' not found.")
            friendship = FriendshipRead.model_validate(rows[0])

            if addressee_id is not None and friendship.addressee_id != addressee_id:
                raise NotAuthorizedError(
                    "Only the addressee can accept a friend request."
                )
            if friendship.status == FriendshipStatus.ACCEPTED:
                logger.debug(f"Friend request {request_id} was already accepted")
                return friendship

            matched = await self.store.update(
                "friendships",
                Eq("id", request_id),
                {"status": FriendshipStatus.ACCEPTED.value},
            )
        except EntityStoreError as e:
            logger.error(
                f"Store error accepting friend request {request_id}: {e}", exc_info=True
            )
            raise StoreError(
                "Failed to accept friend request due to a store error."
            ) from e

        if not matched:
            raise NotFoundError(f"Friend request '{request_id}' not found.")

        logger.info(f"Friend request {request_id} accepted")
        return friendship.model_copy(update={"status": FriendshipStatus.ACCEPTED})

    async def send_request(
        self, requester_id: str, addressee_id: str
    ) -> FriendshipRead:
        """Creates a pending friendship from ``requester_id`` to ``addressee_id``."""
        if requester_id == addressee_id:
            raise ValidationError("Cannot send a friend request to yourself.")

        try:
            addressee = await self.store.query(
                "profiles", Eq("id", addressee_id), limit=1
            )
            if not addressee:
                raise NotFoundError(f"Profile '{addressee_id}' not found.")

            forward = Eq("requester_id", requester_id) & Eq("addressee_id", addressee_id)
            reverse = Eq("requester_id", addressee_id) & Eq("addressee_id", requester_id)
            existing = await self.store.query(
                "friendships", Or(forward, reverse), limit=1
            )
            if existing:
                raise ConflictError("A friendship already exists for these profiles.")

            row = await self.store.insert(
                "friendships",
                {
                    "requester_id": requester_id,
                    "addressee_id": addressee_id,
                    "status": FriendshipStatus.PENDING.value,
                },
            )
        except EntityStoreError as e:
            logger.error(
                f"Store error creating friend request {requester_id} -> {addressee_id}: {e}",
                exc_info=True,
            )
            raise StoreError(
                "Failed to create friend request due to a store error."
            ) from e

        logger.info(f"Friend request {row['id']} sent by {requester_id}")
        return FriendshipRead.model_validate(row)
