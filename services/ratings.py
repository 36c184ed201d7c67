import logging
from datetime import datetime, timezone
from typing import List, Optional

from pymongo import ReturnDocument
from pymongo.database import Database

from database import get_documents, parse_object_id, serialize, to_object_id
from errors import Unauthenticated
from services.profiles import ensure_profile

logger = logging.getLogger(__name__)


def rate_book(db: Database, user_id: Optional[str], book_id: str, rating: float,
              finished_date: Optional[str] = None, notes: Optional[str] = None) -> str:
    """Insert or overwrite the caller's rating for a book and return its id.

    Rating range, finished_date format and the book's existence are not checked.
    """
    if not user_id:
        raise Unauthenticated("Not authenticated")

    profile = ensure_profile(db, user_id)
    uid = to_object_id(user_id, "User")
    bid = to_object_id(book_id, "Book")
    now = datetime.now(timezone.utc)

    doc = db["rating"].find_one_and_update(
        {"book_id": bid, "user_id": uid},
        {
            "$set": {"rating": rating, "finished_date": finished_date, "notes": notes, "updated_at": now},
            "$setOnInsert": {"profile_id": profile["_id"], "created_at": now},
        },
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    logger.info("User %s rated book %s: %s", user_id, book_id, rating)
    return str(doc["_id"])


def get_rating(db: Database, user_id: Optional[str], book_id: str) -> dict:
    empty = {"rating": None, "finished_date": None, "notes": None}
    bid = parse_object_id(book_id)
    if not user_id or bid is None:
        return empty
    r = db["rating"].find_one({"book_id": bid, "user_id": to_object_id(user_id, "User")})
    if not r:
        return empty
    return {"rating": r.get("rating"), "finished_date": r.get("finished_date"), "notes": r.get("notes")}


def _ratings_for(db: Database, book_id: str) -> List[dict]:
    bid = parse_object_id(book_id)
    if bid is None:
        return []
    return get_documents(db, "rating", {"book_id": bid})


def get_average_rating(db: Database, book_id: str) -> Optional[float]:
    ratings = _ratings_for(db, book_id)
    if not ratings:
        return None
    return sum(r["rating"] for r in ratings) / len(ratings)


def get_book_reviews(db: Database, book_id: str) -> List[dict]:
    out = []
    for r in _ratings_for(db, book_id):
        review = serialize(r)
        review["profile"] = serialize(db["profile"].find_one({"user_id": r["user_id"]}))
        out.append(review)
    return out
