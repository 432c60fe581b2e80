from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from blog.models import Image, Tag, UserRef, Vignette


# --- User ---

class UserBase(BaseModel):
    username: str = Field(min_length=1, max_length=50)
    email: str = Field("", max_length=255)
    firstname: str = ""
    lastname: str = ""


# bcrypt only reads the first 72 bytes of a password.
MAX_PASSWORD_BYTES = 72


def _check_password_length(value: str | None) -> str | None:
    if value is not None and len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
    return value


class UserCreate(UserBase):
    password: str = Field(min_length=1)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value):
        return _check_password_length(value)


class UserUpdate(UserBase):
    # None keeps the stored credential; any value is re-salted and rehashed.
    password: str | None = Field(None, min_length=1)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value):
        return _check_password_length(value)


# --- Article ---

class ArticleBase(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    body: str = ""
    tags: list[Tag] = []
    image: Image = Image()
    vignette: Vignette = Vignette()
    status: str = "draft"
    author: UserRef | None = None


class ArticleCreate(ArticleBase):
    created: datetime | None = None


class ArticleUpdate(BaseModel):
    # None (or unset) leaves the stored value alone.
    title: str = Field(min_length=1, max_length=200)
    body: str | None = None
    tags: list[Tag] | None = None
    image: Image | None = None
    vignette: Vignette | None = None
    status: str | None = None
    author: UserRef | None = None
    modified: datetime | None = None
