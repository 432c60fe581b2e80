import logging
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import AsyncIterator

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

from blog.config import settings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Per-context handle counter
# ---------------------------------------------------------------------------

handle_count_var: ContextVar[int] = ContextVar("handle_count", default=0)


def reset_handle_count() -> None:
    """Start a new unit of work (a request, a script run) at zero handles."""
    handle_count_var.set(0)


def get_handle_count() -> int:
    """Handles acquired in the current context since the last reset."""
    return handle_count_var.get()


def parse_object_id(value) -> ObjectId | None:
    """
    Return *value* as an ObjectId, or None when it is not a 24-hex string.

    Validation happens before conversion so that malformed identifiers never
    reach the bson parser.
    """
    if isinstance(value, ObjectId):
        return value
    if not isinstance(value, str) or len(value) != 24 or not ObjectId.is_valid(value):
        return None
    return ObjectId(value)


class MongoHandle:
    """
    Short-lived handle given to a single service operation.

    Only valid inside the ``MongoProvider.session()`` block that created it.
    """

    def __init__(self, database) -> None:
        self._database = database
        self.closed = False

    def collection(self, name: str) -> AsyncIOMotorCollection:
        if self.closed:
            raise RuntimeError("MongoHandle used after release")
        return self._database[name]

    def close(self) -> None:
        self.closed = True


class MongoProvider:
    """
    Owns the Motor client and hands out one handle per operation.

    The client itself pools connections; handles are cheap views onto the
    configured database that are released when the operation finishes,
    whether it succeeded or raised.
    """

    def __init__(
        self,
        url: str | None = None,
        database: str | None = None,
        client=None,
    ) -> None:
        self.url = url or settings.MONGO_URL
        self.database_name = database or settings.MONGO_DATABASE
        self._client = client
        self._open_handles: int = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def client(self):
        if self._client is None:
            self._client = AsyncIOMotorClient(
                self.url,
                serverSelectionTimeoutMS=settings.MONGO_TIMEOUT_MS,
                tz_aware=True,
            )
        return self._client

    async def connect(self) -> None:
        """Create the client and ping the server to surface mis-configuration early."""
        try:
            await self.client.admin.command("ping")
            logger.info("MongoDB connected: %s/%s", self.url, self.database_name)
        except PyMongoError as exc:
            logger.error("MongoDB ping failed for %s: %s", self.url, exc)
            raise

    async def disconnect(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------
    # Handles
    # ------------------------------------------------------------------

    @property
    def open_handles(self) -> int:
        """Handles acquired through ``session()`` and not yet released."""
        return self._open_handles

    @asynccontextmanager
    async def session(self) -> AsyncIterator[MongoHandle]:
        handle = MongoHandle(self.client[self.database_name])
        self._open_handles += 1
        handle_count_var.set(handle_count_var.get() + 1)
        logger.debug("Handle acquired (%d open)", self._open_handles)
        try:
            yield handle
        finally:
            handle.close()
            self._open_handles -= 1
            logger.debug("Handle released (%d open)", self._open_handles)

    async def ensure_indexes(self) -> None:
        """Create the indexes the services rely on.  Safe to call repeatedly."""
        index_map = {
            settings.USER_COLLECTION: [
                ([("username", ASCENDING)], {"unique": True}),
            ],
            settings.ARTICLE_COLLECTION: [
                ([("pretty", ASCENDING)], {}),
                ([("status", ASCENDING)], {}),
                ([("create", DESCENDING)], {}),
            ],
        }
        async with self.session() as handle:
            for name, specs in index_map.items():
                collection = handle.collection(name)
                for keys, kwargs in specs:
                    await collection.create_index(keys, **kwargs)
        logger.info("Indexes ensured on %s", self.database_name)


mongo = MongoProvider()
