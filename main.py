import logging
from contextlib import asynccontextmanager
from typing import List, Literal, Optional

from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, EmailStr
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from config import settings
from database import create_document, db as default_db, ensure_indexes, get_db, to_object_id
from errors import BookshelfError
from schemas import BookOut, ProfileOut, ReviewOut, User, UserOut, UserRating
from security import create_access_token, get_current_user_id, hash_password, verify_password
from services import admin, books, profiles, ratings

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    ensure_indexes(default_db)
    yield


# App setup
app = FastAPI(title="Bookshelf API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BookshelfError)
async def bookshelf_error_handler(request: Request, exc: BookshelfError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


# Pydantic models
class RegisterRequest(BaseModel):
    name: Optional[str] = None
    email: EmailStr
    password: str

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut

class MakeAdminRequest(BaseModel):
    email: str

class BookIn(BaseModel):
    title: str
    author: str
    pages: Optional[int] = None

class RatingIn(BaseModel):
    rating: float
    finished_date: Optional[str] = None
    notes: Optional[str] = None

class ProfileIn(BaseModel):
    name: str
    bio: Optional[str] = None
    favorite_genres: Optional[List[str]] = None

# Routes
@app.get("/")
def root():
    return {"message": "Bookshelf API"}

@app.get("/test")
def test_database(db: Database = Depends(get_db)):
    try:
        collections = db.list_collection_names()
        return {"backend": "ok", "database": "ok", "collections": collections}
    except Exception as e:
        return {"backend": "ok", "database": f"error: {str(e)[:80]}"}

# Auth
@app.post("/auth/register", response_model=UserOut)
def register(payload: RegisterRequest, db: Database = Depends(get_db)):
    if db["user"].find_one({"email": payload.email}):
        raise HTTPException(400, detail="Email already registered")
    user = User(name=payload.name, email=payload.email, password_hash=hash_password(payload.password))
    try:
        user_id = create_document(db, "user", user)
    except DuplicateKeyError:
        raise HTTPException(400, detail="Email already registered")
    logger.info("Registered user %s", user_id)
    return UserOut(id=user_id, name=user.name, email=user.email)

@app.post("/auth/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: Database = Depends(get_db)):
    user = db["user"].find_one({"email": payload.email})
    if not user or not verify_password(payload.password, user.get("password_hash", "")):
        raise HTTPException(status_code=400, detail="Invalid email or password")
    access_token = create_access_token({"sub": str(user["_id"])})
    user_out = UserOut(id=str(user["_id"]), name=user.get("name"), email=user["email"])
    return TokenResponse(access_token=access_token, user=user_out)

@app.get("/me", response_model=UserOut)
def me(user_id: Optional[str] = Depends(get_current_user_id), db: Database = Depends(get_db)):
    user = db["user"].find_one({"_id": to_object_id(user_id, "User")}) if user_id else None
    if not user:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return UserOut(id=str(user["_id"]), name=user.get("name"), email=user["email"])

# Admin
@app.get("/admin/me")
def admin_me(user_id: Optional[str] = Depends(get_current_user_id), db: Database = Depends(get_db)):
    return {"is_admin": admin.is_admin(db, user_id)}

@app.post("/admin/admins")
def admin_make_admin(payload: MakeAdminRequest, user_id: Optional[str] = Depends(get_current_user_id),
                     db: Database = Depends(get_db)):
    admin.make_admin(db, user_id, payload.email)
    return {"ok": True}

@app.delete("/admin/books/{book_id}")
def admin_delete_book(book_id: str, user_id: Optional[str] = Depends(get_current_user_id),
                      db: Database = Depends(get_db)):
    admin.delete_book(db, user_id, book_id)
    return {"deleted": True}

# Books
@app.post("/books")
def add_book(payload: BookIn, user_id: Optional[str] = Depends(get_current_user_id), db: Database = Depends(get_db)):
    book_id = books.add_book(db, user_id, payload.title, payload.author, payload.pages)
    return {"id": book_id}

@app.get("/books", response_model=List[BookOut])
def list_books(
    sort_by: Literal["title", "author", "rating", "finished"] = "title",
    sort_order: Literal["asc", "desc"] = "asc",
    user_id: Optional[str] = Depends(get_current_user_id),
    db: Database = Depends(get_db),
):
    return books.list_books(db, user_id, sort_by, sort_order)

@app.delete("/books/{book_id}")
def remove_book(book_id: str, user_id: Optional[str] = Depends(get_current_user_id), db: Database = Depends(get_db)):
    books.remove_book(db, user_id, book_id)
    return {"deleted": True}

# Ratings & reviews
@app.put("/books/{book_id}/rating")
def rate_book(book_id: str, payload: RatingIn, user_id: Optional[str] = Depends(get_current_user_id),
              db: Database = Depends(get_db)):
    rating_id = ratings.rate_book(db, user_id, book_id, payload.rating, payload.finished_date, payload.notes)
    return {"id": rating_id}

@app.get("/books/{book_id}/rating", response_model=UserRating)
def get_rating(book_id: str, user_id: Optional[str] = Depends(get_current_user_id), db: Database = Depends(get_db)):
    return ratings.get_rating(db, user_id, book_id)

@app.get("/books/{book_id}/average-rating")
def get_average_rating(book_id: str, db: Database = Depends(get_db)):
    return {"average_rating": ratings.get_average_rating(db, book_id)}

@app.get("/books/{book_id}/reviews", response_model=List[ReviewOut])
def get_book_reviews(book_id: str, db: Database = Depends(get_db)):
    return ratings.get_book_reviews(db, book_id)

# Profiles
@app.get("/profiles/{user_id}", response_model=Optional[ProfileOut])
def get_profile(user_id: str, db: Database = Depends(get_db)):
    return profiles.get_profile(db, user_id)

@app.put("/profiles/me")
def update_profile(payload: ProfileIn, user_id: Optional[str] = Depends(get_current_user_id),
                   db: Database = Depends(get_db)):
    profile_id = profiles.update_profile(db, user_id, payload.model_dump(exclude_unset=True))
    return {"id": profile_id}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
