"""
Database Schemas for the Bookshelf API

Collection names are the lowercase of the document class name:
- User -> "user"
- Book -> "book"
- "admin", "profile" and "rating" hold ObjectId references and are written
  directly by the services

The *Out models describe what the API returns; ids are exposed as strings.
"""

from pydantic import BaseModel, Field
from typing import List, Optional


class User(BaseModel):
    name: Optional[str] = Field(None, description="Display name")
    email: str = Field(..., description="Unique email address")
    password_hash: str = Field(..., description="Hashed password")


class Book(BaseModel):
    title: str = Field(..., description="Book title")
    author: str = Field(..., description="Author name")
    pages: Optional[int] = Field(None, description="Page count")


class UserOut(BaseModel):
    id: str
    name: Optional[str] = None
    email: str


class BookOut(BaseModel):
    id: str
    title: str
    author: str
    pages: Optional[int] = None


class ProfileOut(BaseModel):
    id: str
    user_id: str
    name: str
    bio: Optional[str] = None
    favorite_genres: Optional[List[str]] = None


class UserRating(BaseModel):
    rating: Optional[float] = None
    finished_date: Optional[str] = None
    notes: Optional[str] = None


class ReviewOut(BaseModel):
    id: str
    book_id: str
    user_id: str
    profile_id: Optional[str] = None
    rating: float
    finished_date: Optional[str] = None
    notes: Optional[str] = None
    profile: Optional[ProfileOut] = None
