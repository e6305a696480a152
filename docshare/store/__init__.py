from .base import EntityStoreClient, EntityStoreError, Subscription
from .filters import And, Eq, Filter, ILike, In, Or, Order, escape_like
from .sqlalchemy_store import ChangeFeed, SQLAlchemyEntityStore

__all__ = [
    "EntityStoreClient",
    "EntityStoreError",
    "Subscription",
    "ChangeFeed",
    "SQLAlchemyEntityStore",
    "Filter",
    "Eq",
    "In",
    "ILike",
    "And",
    "Or",
    "Order",
    "escape_like",
]
