"""
Test infrastructure for the blog data-access layer.

Strategy
--------
- mongomock-motor's AsyncMongoMockClient stands in for a MongoDB server and
  is injected into a MongoProvider, so the services run their real query
  paths without any external infrastructure.
- Every test gets a fresh client, which gives each test a clean, isolated
  database without dropping collections.
- The bcrypt work factor is lowered to its minimum so that hashing does not
  dominate suite runtime; the algorithm and code path are unchanged.
- ``failing_mongo`` swaps every collection for one whose operations raise
  PyMongoError, to exercise error wrapping and handle release.
"""
import pytest
import pytest_asyncio
from mongomock_motor import AsyncMongoMockClient
from pymongo.errors import PyMongoError

from blog.config import settings
from blog.database import MongoHandle, MongoProvider
from blog.schemas import ArticleCreate, UserCreate
from blog.services import article_service, user_service


# ---------------------------------------------------------------------------
# Failing store doubles
# ---------------------------------------------------------------------------

class _FailingCursor:
    async def to_list(self, length=None):
        raise PyMongoError("store unavailable")


class FailingCollection:
    """Collection whose every operation raises PyMongoError."""

    def find(self, *args, **kwargs):
        return _FailingCursor()

    async def find_one(self, *args, **kwargs):
        raise PyMongoError("store unavailable")

    async def insert_one(self, *args, **kwargs):
        raise PyMongoError("store unavailable")

    async def update_one(self, *args, **kwargs):
        raise PyMongoError("store unavailable")

    async def delete_one(self, *args, **kwargs):
        raise PyMongoError("store unavailable")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    monkeypatch.setattr(settings, "BCRYPT_ROUNDS", 4)


@pytest_asyncio.fixture
async def mongo() -> MongoProvider:
    """Yield a MongoProvider backed by a fresh in-memory client with indexes."""
    provider = MongoProvider(database="blog_test", client=AsyncMongoMockClient())
    await provider.ensure_indexes()
    yield provider


@pytest.fixture
def failing_mongo(mongo: MongoProvider, monkeypatch) -> MongoProvider:
    monkeypatch.setattr(MongoHandle, "collection", lambda self, name: FailingCollection())
    return mongo


@pytest_asyncio.fixture
async def alice(mongo: MongoProvider):
    return await user_service.add(
        mongo,
        UserCreate(
            username="alice",
            password="s3cret-pass",
            email="alice@example.com",
            firstname="Alice",
            lastname="Martin",
        ),
    )


@pytest_asyncio.fixture
async def article(mongo: MongoProvider, alice):
    return await article_service.add(
        mongo,
        ArticleCreate(
            title="Hello World",
            body="First post",
            status="published",
            author={"id": alice.id},
        ),
    )
