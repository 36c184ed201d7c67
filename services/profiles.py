import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pymongo import ReturnDocument
from pymongo.database import Database

from database import parse_object_id, serialize, to_object_id
from errors import NotFound, Unauthenticated

logger = logging.getLogger(__name__)

DEFAULT_READER_NAME = "Anonymous Reader"


def get_profile(db: Database, user_id: str) -> Optional[dict]:
    uid = parse_object_id(user_id)
    if uid is None:
        return None
    return serialize(db["profile"].find_one({"user_id": uid}))


def ensure_profile(db: Database, user_id: str) -> dict:
    """Return the caller's profile, creating one named after the user if missing."""
    uid = to_object_id(user_id, "User")
    profile = db["profile"].find_one({"user_id": uid})
    if profile:
        return profile

    user = db["user"].find_one({"_id": uid})
    if not user:
        raise NotFound("User not found")
    profile = db["profile"].find_one_and_update(
        {"user_id": uid},
        {"$setOnInsert": {
            "name": user.get("name") or DEFAULT_READER_NAME,
            "created_at": datetime.now(timezone.utc),
        }},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    logger.info("Created profile %s for user %s", profile["_id"], user_id)
    return profile


def update_profile(db: Database, user_id: Optional[str], fields: Dict[str, Any]) -> str:
    """Create or patch the caller's profile.

    ``fields`` holds name plus whichever of bio / favorite_genres the caller
    sent; each replaces the stored value outright.
    """
    if not user_id:
        raise Unauthenticated("Not authenticated")

    uid = to_object_id(user_id, "User")
    profile = db["profile"].find_one_and_update(
        {"user_id": uid},
        {
            "$set": dict(fields, updated_at=datetime.now(timezone.utc)),
            "$setOnInsert": {"created_at": datetime.now(timezone.utc)},
        },
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return str(profile["_id"])
