import pytest

from blog.database import MongoProvider
from blog.services import article_service, user_service
from scripts.seed import seed


@pytest.mark.asyncio
async def test_seed_small(mongo: MongoProvider):
    counts = await seed(mongo, small=True)
    # One handle for index setup, then one per user and per article.
    assert counts == {"users": 3, "articles": 10, "handles": 14}

    users = await user_service.find_all(mongo)
    assert len(users) == 3
    assert await user_service.get(mongo, "user_0000", "password-0000") is not None

    articles = await article_service.find_all(mongo)
    assert len(articles) == 10
    user_ids = {u.id for u in users}
    assert all(a.author.id in user_ids for a in articles)
    assert all(a.slug == article_service.slugify(a.title) for a in articles)
