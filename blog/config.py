import logging

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    MONGO_URL: str = "mongodb://localhost:27017"
    MONGO_DATABASE: str = "blog"
    MONGO_TIMEOUT_MS: int = 5000
    APP_ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Collections
    USER_COLLECTION: str = "user"
    ARTICLE_COLLECTION: str = "article"

    # bcrypt work factor (4..31)
    BCRYPT_ROUNDS: int = 12

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()


def configure_logging(level: str | None = None) -> None:
    """Install a root handler at *level* (defaults to ``settings.LOG_LEVEL``)."""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )
