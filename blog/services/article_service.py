"""
Article service — persistence and slug derivation for the Article aggregate.

Design notes
------------
- The slug (``pretty`` in the stored document) is always derived from the
  title with ``slugify``; callers cannot supply one.  A title with no word
  characters falls back to the article id.
- ``add`` initialises ``modified`` to the creation time; ``update`` sets it
  to the caller's value or to the current time.
- The author is stored as a DBRef to the user collection and is only
  resolved on request through ``get_author``.
- Lookups by id or slug do not distinguish a malformed id from a missing
  article: both raise ``NotFound("no article")``.
"""
import logging
import re
import unicodedata
from datetime import datetime, timezone

from bson import DBRef, ObjectId
from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from blog.config import settings
from blog.database import MongoHandle, MongoProvider, parse_object_id
from blog.exceptions import InvalidID, NotFound, NotPersisted, QueryError, WriteError
from blog.models import Article, Image, Tag, User, UserRef, Vignette
from blog.schemas import ArticleCreate, ArticleUpdate
from blog.services import user_service

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_SLUG_STRIP_RE = re.compile(r"[^\w\s-]")
_SLUG_SPACE_RE = re.compile(r"[\s_]+")
_SLUG_DASH_RE = re.compile(r"-+")

_NEWEST_FIRST = [("create", DESCENDING)]

# ArticleUpdate field -> stored document key
_UPDATABLE_FIELDS = {
    "body": "texte",
    "tags": "tags",
    "image": "image",
    "vignette": "vignette",
    "status": "status",
    "author": "userref",
}


def slugify(text: str) -> str:
    """
    Return a lowercase, dash-separated slug derived from *text*.

    Accents are removed but non-Latin letters are kept, so the result may be
    empty only when *text* has no word characters at all.
    """
    text = unicodedata.normalize("NFKD", text)
    text = unicodedata.normalize("NFC", "".join(c for c in text if not unicodedata.combining(c)))
    text = _SLUG_STRIP_RE.sub("", text.lower().strip())
    text = _SLUG_SPACE_RE.sub("-", text)
    return _SLUG_DASH_RE.sub("-", text).strip("-")


def _slug_for(title: str, oid: ObjectId) -> str:
    """Slug of *title*, or the article id when the title yields none."""
    return slugify(title) or str(oid)


def _collection(handle: MongoHandle):
    return handle.collection(settings.ARTICLE_COLLECTION)


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _author_to_dbref(author: UserRef | None) -> DBRef | None:
    if author is None:
        return None
    oid = parse_object_id(author.id)
    return DBRef(settings.USER_COLLECTION, oid if oid is not None else author.id)


def _dbref_to_author(ref) -> UserRef | None:
    if isinstance(ref, DBRef):
        return UserRef(collection=ref.collection, id=str(ref.id))
    if isinstance(ref, dict) and ref.get("$id") is not None:
        return UserRef(collection=ref.get("$ref", settings.USER_COLLECTION), id=str(ref["$id"]))
    return None


def _field_to_document(field: str, value):
    if field == "author":
        return _author_to_dbref(value)
    if field == "tags":
        return [t.model_dump() for t in value]
    if field in ("image", "vignette"):
        return value.model_dump()
    return value


def _document_to_article(doc: dict) -> Article:
    return Article(
        id=str(doc["_id"]),
        title=doc.get("titre") or "",
        slug=doc.get("pretty") or "",
        body=doc.get("texte") or "",
        tags=[Tag(**t) for t in doc.get("tags") or []],
        image=Image(**(doc.get("image") or {})),
        vignette=Vignette(**(doc.get("vignette") or {})),
        status=doc.get("status") or "",
        created=doc.get("create"),
        modified=doc.get("modified"),
        author=_dbref_to_author(doc.get("userref")),
    )


async def _find_one(mongo: MongoProvider, query: dict) -> Article:
    async with mongo.session() as handle:
        try:
            doc = await _collection(handle).find_one(query)
        except PyMongoError as exc:
            logger.error("Article lookup failed for %s: %s", query, exc)
            raise NotFound("no article") from exc
    if doc is None:
        raise NotFound("no article")
    return _document_to_article(doc)


async def _find_many(mongo: MongoProvider, query: dict, label: str) -> list[Article]:
    async with mongo.session() as handle:
        try:
            docs = await _collection(handle).find(query, sort=_NEWEST_FIRST).to_list(length=None)
        except PyMongoError as exc:
            logger.error("%s failed: %s", label, exc)
            raise QueryError(f"error in {label}") from exc
    return [_document_to_article(d) for d in docs]


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def get_by_id(mongo: MongoProvider, article_id: str) -> Article:
    oid = parse_object_id(article_id)
    if oid is None:
        raise NotFound("no article")
    return await _find_one(mongo, {"_id": oid})


async def get_by_pretty(mongo: MongoProvider, pretty: str) -> Article:
    """Return the article whose slug is *pretty*."""
    return await _find_one(mongo, {"pretty": pretty})


async def add(mongo: MongoProvider, data: ArticleCreate) -> Article:
    """
    Insert a new article and return it as read back from the store.

    ``created`` defaults to the current UTC time; ``modified`` starts equal
    to it.
    """
    created = data.created or datetime.now(timezone.utc)
    doc_id = ObjectId()
    doc = {
        "_id": doc_id,
        "titre": data.title,
        "pretty": _slug_for(data.title, doc_id),
        "texte": data.body,
        "tags": [t.model_dump() for t in data.tags],
        "image": data.image.model_dump(),
        "vignette": data.vignette.model_dump(),
        "status": data.status,
        "create": created,
        "modified": created,
        "userref": _author_to_dbref(data.author),
    }

    async with mongo.session() as handle:
        collection = _collection(handle)
        try:
            await collection.insert_one(doc)
            stored = await collection.find_one({"_id": doc["_id"]})
        except PyMongoError as exc:
            logger.error("Article %r not saved: %s", data.title, exc)
            raise NotPersisted("article not saved") from exc

    if stored is None:
        raise NotPersisted("article not saved")
    logger.debug("Added article %s (%s)", stored["_id"], stored["pretty"])
    return _document_to_article(stored)


async def find_by_status(mongo: MongoProvider, status: str) -> list[Article]:
    return await _find_many(mongo, {"status": status}, "find_by_status")


async def find_all(mongo: MongoProvider) -> list[Article]:
    return await _find_many(mongo, {}, "find_all")


async def delete(mongo: MongoProvider, article: Article) -> None:
    """
    Delete the article matching both ``article.id`` and ``article.title``.

    Matching nothing is a silent no-op.
    """
    oid = parse_object_id(article.id)
    if oid is None:
        logger.debug("Delete skipped, unparsable article id %r", article.id)
        return

    async with mongo.session() as handle:
        try:
            result = await _collection(handle).delete_one({"_id": oid, "titre": article.title})
        except PyMongoError as exc:
            logger.error("Deleting article %s failed: %s", article.id, exc)
            raise WriteError("article not deleted") from exc
    logger.debug("Deleted %d article(s) for id=%s", result.deleted_count, article.id)


async def update(mongo: MongoProvider, article_id: str, data: ArticleUpdate) -> None:
    """
    Retitle *article_id* (rederiving its slug) and overwrite every other
    field that *data* carries.  Fields left unset or set to None keep their
    stored value.
    """
    oid = parse_object_id(article_id)
    if oid is None:
        raise InvalidID(f"incorrect id: {article_id!r}")

    fields = {
        "titre": data.title,
        "pretty": _slug_for(data.title, oid),
        "modified": data.modified or datetime.now(timezone.utc),
    }
    for name, key in _UPDATABLE_FIELDS.items():
        value = getattr(data, name)
        if value is not None:
            fields[key] = _field_to_document(name, value)

    async with mongo.session() as handle:
        try:
            result = await _collection(handle).update_one({"_id": oid}, {"$set": fields})
        except PyMongoError as exc:
            logger.error("Updating article %s failed: %s", article_id, exc)
            raise WriteError("article not updated") from exc

    if result.matched_count == 0:
        raise NotFound("no article")


async def get_author(mongo: MongoProvider, article: Article) -> User:
    """Resolve the article's author reference with a separate user lookup."""
    if article.author is None:
        raise NotFound(f"article {article.id} has no author")
    return await user_service.get_by_id(mongo, article.author.id)
