import logging
from datetime import datetime, timezone
from typing import Optional

from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from database import to_object_id
from errors import Conflict, Forbidden, NotFound, Unauthenticated

logger = logging.getLogger(__name__)


def is_admin(db: Database, user_id: Optional[str]) -> bool:
    if not user_id:
        return False
    return db["admin"].find_one({"user_id": to_object_id(user_id, "User")}) is not None


def require_admin(db: Database, user_id: Optional[str], action: str) -> None:
    if not user_id:
        raise Unauthenticated("Not authenticated")
    if not is_admin(db, user_id):
        logger.warning("User %s denied admin action: %s", user_id, action)
        raise Forbidden(f"Only admins can {action}")


def _insert_admin(db: Database, target_id) -> str:
    res = db["admin"].insert_one({"user_id": target_id, "created_at": datetime.now(timezone.utc)})
    return str(res.inserted_id)


def make_admin(db: Database, user_id: Optional[str], email: str) -> None:
    require_admin(db, user_id, "make other users admins")

    target = db["user"].find_one({"email": email})
    if not target:
        raise NotFound("User not found")
    if db["admin"].find_one({"user_id": target["_id"]}):
        raise Conflict("User is already an admin")
    # the unique index on admin.user_id catches a concurrent promotion
    try:
        _insert_admin(db, target["_id"])
    except DuplicateKeyError:
        raise Conflict("User is already an admin")
    logger.info("User %s granted admin by %s", target["_id"], user_id)


def provision_admin(db: Database, email: str) -> str:
    """Grant admin rights without a caller check.

    Only for bootstrapping the first admin from scripts/seed_admin.py; there is
    no HTTP route for it.
    """
    target = db["user"].find_one({"email": email})
    if not target:
        raise NotFound("User not found")
    existing = db["admin"].find_one({"user_id": target["_id"]})
    if existing:
        return str(existing["_id"])
    admin_id = _insert_admin(db, target["_id"])
    logger.info("Provisioned admin %s for %s", admin_id, email)
    return admin_id


def delete_book(db: Database, user_id: Optional[str], book_id: str) -> None:
    """Delete a book together with every rating that points at it.

    Ratings go first, then the book; the two steps are not wrapped in a
    transaction.
    """
    require_admin(db, user_id, "delete books")

    oid = to_object_id(book_id, "Book")
    res = db["rating"].delete_many({"book_id": oid})
    db["book"].delete_one({"_id": oid})
    logger.info("Book %s deleted by %s with %d ratings", book_id, user_id, res.deleted_count)
