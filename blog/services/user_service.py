"""
User service — CRUD and credential checks for the User aggregate.

Passwords never reach the store in plaintext: ``add`` and ``update`` hash
them with a freshly generated salt and persist the salt next to the hash.
``get`` verifies a candidate password against that pair and reports every
failure as ``InvalidCredentials`` so callers cannot probe for usernames.
"""
import logging

from bson import ObjectId
from pymongo.errors import PyMongoError

from blog.config import settings
from blog.database import MongoHandle, MongoProvider, parse_object_id
from blog.exceptions import (
    HashError,
    InvalidCredentials,
    InvalidID,
    NotFound,
    NotPersisted,
    QueryError,
    WriteError,
)
from blog.models import User
from blog.schemas import UserCreate, UserUpdate
from blog.security import check_password, generate_salt, hash_password

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _collection(handle: MongoHandle):
    return handle.collection(settings.USER_COLLECTION)


def _document_to_user(doc: dict) -> User:
    return User(
        id=str(doc["_id"]),
        username=doc["username"],
        password=doc["password"],
        salt=doc["salt"],
        email=doc.get("email", ""),
        firstname=doc.get("firstname", ""),
        lastname=doc.get("lastname", ""),
    )


def _hashed_credential(password: str) -> dict:
    """Return the ``password``/``salt`` pair to store for *password*."""
    salt = generate_salt()
    hashed = hash_password(password, salt)
    return {"password": hashed.decode("ascii"), "salt": salt.decode("ascii")}


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def get_by_id(mongo: MongoProvider, user_id: str) -> User:
    """
    Return the user stored under *user_id*.

    Raises InvalidID when *user_id* is not a 24-hex string and NotFound when
    no user has that id.
    """
    oid = parse_object_id(user_id)
    if oid is None:
        raise InvalidID(f"incorrect id: {user_id!r}")

    async with mongo.session() as handle:
        try:
            doc = await _collection(handle).find_one({"_id": oid})
        except PyMongoError as exc:
            logger.error("User lookup failed for id=%s: %s", user_id, exc)
            raise QueryError("user lookup failed") from exc

    if doc is None:
        raise NotFound(f"no user with id {user_id}")
    return _document_to_user(doc)


async def get(mongo: MongoProvider, username: str, password: str) -> User:
    """Return the user when *password* matches the stored credential."""
    async with mongo.session() as handle:
        try:
            doc = await _collection(handle).find_one({"username": username})
        except PyMongoError as exc:
            logger.error("User lookup failed for username=%r: %s", username, exc)
            raise InvalidCredentials("invalid credentials") from exc

    if doc is None:
        logger.info("Authentication failed for username=%r", username)
        raise InvalidCredentials("invalid credentials")

    try:
        valid = check_password(
            password, doc["salt"].encode("ascii"), doc["password"].encode("ascii")
        )
    except HashError as exc:
        logger.warning("Stored credential unusable for username=%r: %s", username, exc)
        raise InvalidCredentials("invalid credentials") from exc

    if not valid:
        logger.info("Authentication failed for username=%r", username)
        raise InvalidCredentials("invalid credentials")
    return _document_to_user(doc)


async def add(mongo: MongoProvider, data: UserCreate) -> User:
    """
    Hash the password, insert the user and return the stored document.

    The returned value is read back from the store, so it carries the
    generated id, salt and hash rather than the caller's plaintext.
    """
    doc = {
        "_id": ObjectId(),
        "username": data.username,
        **_hashed_credential(data.password),
        "email": data.email,
        "firstname": data.firstname,
        "lastname": data.lastname,
    }

    async with mongo.session() as handle:
        collection = _collection(handle)
        try:
            await collection.insert_one(doc)
            stored = await collection.find_one({"_id": doc["_id"]})
        except PyMongoError as exc:
            logger.error("User %r not saved: %s", data.username, exc)
            raise NotPersisted("user not saved") from exc

    if stored is None:
        raise NotPersisted("user not saved")
    logger.debug("Added user %s (%s)", stored["_id"], data.username)
    return _document_to_user(stored)


async def find_all(mongo: MongoProvider) -> list[User]:
    async with mongo.session() as handle:
        try:
            docs = await _collection(handle).find({}).to_list(length=None)
        except PyMongoError as exc:
            logger.error("Listing users failed: %s", exc)
            raise QueryError("error listing users") from exc
    return [_document_to_user(d) for d in docs]


async def delete(mongo: MongoProvider, user: User) -> None:
    """
    Delete the user matching both ``user.id`` and ``user.username``.

    Matching nothing is not an error: the call returns normally and callers
    cannot tell "deleted" from "nothing to delete".
    """
    oid = parse_object_id(user.id)
    if oid is None:
        logger.debug("Delete skipped, unparsable user id %r", user.id)
        return

    async with mongo.session() as handle:
        try:
            result = await _collection(handle).delete_one(
                {"_id": oid, "username": user.username}
            )
        except PyMongoError as exc:
            logger.error("Deleting user %s failed: %s", user.id, exc)
            raise WriteError("user not deleted") from exc
    logger.debug("Deleted %d user(s) for id=%s", result.deleted_count, user.id)


async def update(mongo: MongoProvider, user_id: str, data: UserUpdate) -> None:
    """
    Overwrite the profile fields of *user_id*.

    A supplied password is always re-salted and rehashed, even when it equals
    the current one.  Omitting it leaves the stored password and salt as-is.
    """
    oid = parse_object_id(user_id)
    if oid is None:
        raise InvalidID(f"incorrect id: {user_id!r}")

    fields = {
        "username": data.username,
        "firstname": data.firstname,
        "lastname": data.lastname,
        "email": data.email,
    }
    if data.password is not None:
        fields.update(_hashed_credential(data.password))

    async with mongo.session() as handle:
        try:
            result = await _collection(handle).update_one({"_id": oid}, {"$set": fields})
        except PyMongoError as exc:
            logger.error("Updating user %s failed: %s", user_id, exc)
            raise WriteError("user not updated") from exc

    if result.matched_count == 0:
        raise NotFound(f"no user with id {user_id}")
