"""
Regression tests for behaviours that are easy to break during refactoring.

1. Updating a user without a password must not touch the stored credential
2. Article.modified starts equal to Article.created
3. Deletes that match nothing return normally and report nothing
4. Malformed and missing article ids are indistinguishable to callers
5. Plaintext passwords never reach the user collection
"""
import pytest
from bson import ObjectId

from blog.config import settings
from blog.database import MongoProvider
from blog.exceptions import NotFound
from blog.models import Article, User
from blog.schemas import ArticleCreate, UserCreate, UserUpdate
from blog.services import article_service, user_service


# ---------------------------------------------------------------------------
# 1. Profile-only update keeps the credential
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_update_without_password_keeps_credential(mongo: MongoProvider, alice: User):
    await user_service.update(
        mongo, alice.id, UserUpdate(username="alice", firstname="Alicia")
    )
    updated = await user_service.get_by_id(mongo, alice.id)
    assert updated.firstname == "Alicia"
    assert updated.salt == alice.salt
    assert updated.password == alice.password
    assert await user_service.get(mongo, "alice", "s3cret-pass") == updated


# ---------------------------------------------------------------------------
# 2. modified == created on add
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_modified_initialised_to_created(mongo: MongoProvider):
    result = await article_service.add(mongo, ArticleCreate(title="Fresh"))
    stored = await article_service.get_by_id(mongo, result.id)
    assert stored.modified == stored.created


# ---------------------------------------------------------------------------
# 3. Silent no-op deletes
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_delete_missing_user_returns_none(mongo: MongoProvider):
    ghost = User(id=str(ObjectId()), username="ghost", password="x", salt="y")
    assert await user_service.delete(mongo, ghost) is None


@pytest.mark.asyncio
async def test_delete_missing_article_returns_none(mongo: MongoProvider, article: Article):
    ghost = article.model_copy(update={"id": str(ObjectId())})
    assert await article_service.delete(mongo, ghost) is None
    assert await article_service.find_all(mongo) == [article]


# ---------------------------------------------------------------------------
# 4. Malformed vs missing article ids
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_article_lookup_errors_are_uniform(mongo: MongoProvider):
    with pytest.raises(NotFound) as malformed:
        await article_service.get_by_id(mongo, "not-an-id")
    with pytest.raises(NotFound) as missing:
        await article_service.get_by_id(mongo, str(ObjectId()))
    assert str(malformed.value) == str(missing.value) == "no article"


# ---------------------------------------------------------------------------
# 5. No plaintext in the store
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_no_plaintext_password_stored(mongo: MongoProvider):
    await user_service.add(mongo, UserCreate(username="carol", password="plain-text-pw"))
    await user_service.update(
        mongo,
        (await user_service.get(mongo, "carol", "plain-text-pw")).id,
        UserUpdate(username="carol", password="another-plain-pw"),
    )
    async with mongo.session() as handle:
        doc = await handle.collection(settings.USER_COLLECTION).find_one({"username": "carol"})
    assert set(doc) == {"_id", "username", "password", "salt", "email", "firstname", "lastname"}
    assert "plain-text-pw" not in doc.values()
    assert "another-plain-pw" not in doc.values()
