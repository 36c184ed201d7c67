import logging
from collections import defaultdict
from typing import Dict, List, Optional

from pymongo.database import Database

from database import create_document, get_documents, serialize, to_object_id
from schemas import Book
from services.admin import require_admin

logger = logging.getLogger(__name__)

SORT_KEYS = ("title", "author", "rating", "finished")
SORT_ORDERS = ("asc", "desc")


def add_book(db: Database, user_id: Optional[str], title: str, author: str, pages: Optional[int] = None) -> str:
    # anonymous callers may add books too
    book_id = create_document(db, "book", Book(title=title, author=author, pages=pages))
    logger.info("Book %s added by %s", book_id, user_id or "anonymous")
    return book_id


def text_key(value: str):
    # case-insensitive, exact text breaks ties
    return value.casefold(), value


def average_ratings(ratings: List[dict]) -> Dict[str, float]:
    grouped = defaultdict(list)
    for r in ratings:
        grouped[str(r["book_id"])].append(r["rating"])
    return {book_id: sum(values) / len(values) for book_id, values in grouped.items()}


def finished_dates(ratings: List[dict]) -> Dict[str, str]:
    return {str(r["book_id"]): r["finished_date"] for r in ratings if r.get("finished_date")}


def list_books(db: Database, user_id: Optional[str], sort_by: str = "title", sort_order: str = "asc") -> List[dict]:
    """Return every book ordered by ``sort_by``.

    ``rating`` puts the highest average first and ``finished`` the caller's most
    recently finished books first. ``desc`` reverses whatever order the key
    produced, so on those two keys it turns the list back to ascending.
    """
    if sort_by not in SORT_KEYS:
        raise ValueError(f"sort_by must be one of {SORT_KEYS}")
    if sort_order not in SORT_ORDERS:
        raise ValueError(f"sort_order must be one of {SORT_ORDERS}")

    books = get_documents(db, "book")
    all_ratings = get_documents(db, "rating")
    own_ratings = get_documents(db, "rating", {"user_id": to_object_id(user_id, "User")}) if user_id else []

    if sort_by == "title":
        books.sort(key=lambda b: text_key(b["title"]))
    elif sort_by == "author":
        books.sort(key=lambda b: text_key(b["author"]))
    elif sort_by == "rating":
        avg = average_ratings(all_ratings)
        books.sort(key=lambda b: avg.get(str(b["_id"]), 0), reverse=True)
    elif sort_by == "finished":
        dates = finished_dates(own_ratings)
        books.sort(key=lambda b: dates.get(str(b["_id"]), ""), reverse=True)

    if sort_order == "desc":
        books.reverse()

    return [serialize(b) for b in books]


def remove_book(db: Database, user_id: Optional[str], book_id: str) -> None:
    """Delete only the book document; its ratings stay behind (see admin.delete_book)."""
    require_admin(db, user_id, "remove books")
    db["book"].delete_one({"_id": to_object_id(book_id, "Book")})
    logger.info("Book %s removed by %s", book_id, user_id)
