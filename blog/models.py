from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# User
# ---------------------------------------------------------------------------
class User(BaseModel):
    """A stored user account.  ``password`` and ``salt`` hold bcrypt values."""

    id: str
    username: str
    password: str
    salt: str
    email: str = ""
    firstname: str = ""
    lastname: str = ""

    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Article parts
# ---------------------------------------------------------------------------
class Tag(BaseModel):
    name: str = Field(max_length=50)


class Image(BaseModel):
    name: str = ""
    url: str = ""


class Vignette(BaseModel):
    """Thumbnail shown in article listings."""

    name: str = ""
    url: str = ""


class UserRef(BaseModel):
    """
    Weak reference to the authoring user: collection name + id.

    Never dereferenced implicitly; use ``article_service.get_author``.
    """

    collection: str = "user"
    id: str

    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Article
# ---------------------------------------------------------------------------
class Article(BaseModel):
    id: str
    title: str
    slug: str
    body: str = ""
    tags: List[Tag] = []
    image: Image = Image()
    vignette: Vignette = Vignette()
    status: str = ""
    created: Optional[datetime] = None
    modified: Optional[datetime] = None
    author: Optional[UserRef] = None

    model_config = ConfigDict(frozen=True)
