"""Database seeder for local development."""
import argparse
import asyncio
import logging
import random
import time
from datetime import datetime, timedelta, timezone

from blog.config import configure_logging, settings
from blog.database import MongoProvider, get_handle_count, mongo, reset_handle_count
from blog.models import Tag, UserRef
from blog.schemas import ArticleCreate, UserCreate
from blog.services import article_service, user_service

logger = logging.getLogger("seed")

TAGS = ["python", "mongodb", "motor", "pydantic", "docker", "testing",
        "performance", "security", "devops", "asyncio"]

STATUSES = ["draft", "published", "published", "published"]


async def seed(provider: MongoProvider, small: bool = False, drop: bool = False) -> dict:
    num_users = 3 if small else 20
    num_articles = 10 if small else 500

    reset_handle_count()
    start = time.perf_counter()
    if drop:
        await provider.client.drop_database(provider.database_name)
        logger.info("Dropped database %s", provider.database_name)
    await provider.ensure_indexes()

    users = []
    for i in range(num_users):
        users.append(await user_service.add(
            provider,
            UserCreate(
                username=f"user_{i:04d}",
                password=f"password-{i:04d}",
                email=f"user_{i:04d}@example.com",
                firstname="User",
                lastname=str(i),
            ),
        ))
    logger.info("Created %d users", len(users))

    for i in range(num_articles):
        created = datetime.now(timezone.utc) - timedelta(days=random.randint(0, 365))
        await article_service.add(
            provider,
            ArticleCreate(
                title=f"Article {i}: working with {random.choice(TAGS)}",
                body=f"This is the full content of article {i}. " * 20,
                tags=[Tag(name=n) for n in random.sample(TAGS, k=random.randint(1, 4))],
                status=random.choice(STATUSES),
                created=created,
                author=UserRef(collection=settings.USER_COLLECTION, id=random.choice(users).id),
            ),
        )
    logger.info("Created %d articles", num_articles)

    elapsed = time.perf_counter() - start
    handles = get_handle_count()
    logger.info("Seeding complete in %.1fs (%d store handles)", elapsed, handles)
    return {"users": num_users, "articles": num_articles, "handles": handles}


async def _run(small: bool, drop: bool) -> None:
    await mongo.connect()
    try:
        await seed(mongo, small=small, drop=drop)
    finally:
        await mongo.disconnect()


def main():
    parser = argparse.ArgumentParser(description="Seed the blog database")
    parser.add_argument("--small", action="store_true", help="Use a small dataset (10 articles)")
    parser.add_argument("--drop", action="store_true", help="Drop the database before seeding")
    args = parser.parse_args()
    configure_logging()
    asyncio.run(_run(small=args.small, drop=args.drop))


if __name__ == "__main__":
    main()
