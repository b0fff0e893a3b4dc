# movie_catalog/schemas.py
import datetime
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional

# --- Movie Schemas ---
class MovieBase(BaseModel):
    title: str
    original_title: Optional[str] = None
    tagline: Optional[str] = None
    overview: Optional[str] = None
    release_date: Optional[datetime.date] = None
    runtime_minutes: Optional[int] = None
    budget: Optional[int] = None
    revenue: Optional[int] = None
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    imdb_id: Optional[str] = None


class Movie(MovieBase):
    movie_id: int

    class Config:
        from_attributes = True


class MovieWithRating(Movie):
    genres: List[str] = []
    avgRating: float = 0.0
    ratingCount: int = 0


class MovieSummary(BaseModel):
    movie_id: int
    title: str
    poster_path: Optional[str] = None
    release_date: Optional[datetime.date] = None

    class Config:
        from_attributes = True


# --- Credits ---
class CastMember(BaseModel):
    person_id: int
    name: str
    character_name: Optional[str] = None
    cast_order: Optional[int] = None
    profile_path: Optional[str] = None


class CrewMember(BaseModel):
    person_id: int
    name: str
    department: Optional[str] = None
    job: Optional[str] = None


class MovieDetail(MovieWithRating):
    cast: List[CastMember] = []
    crew: List[CrewMember] = []
    userRating: Optional[float] = None
    isInWatchlist: bool = False


# --- User Schemas ---
class UserPublic(BaseModel):
    user_id: int
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None

    class Config:
        from_attributes = True


class UserProfile(UserPublic):
    bio: Optional[str] = None
    created_at: Optional[datetime.datetime] = None


class UserPrivate(UserProfile):
    email: str
    is_active: bool
    email_verified: bool


class UserRegister(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    email: str = Field(max_length=100)
    password: str = Field(min_length=6)
    first_name: Optional[str] = Field(default=None, max_length=50)
    last_name: Optional[str] = Field(default=None, max_length=50)

    @field_validator("email")
    @classmethod
    def email_has_at(cls, value: str) -> str:
        if "@" not in value or value.startswith("@") or value.endswith("@"):
            raise ValueError("must be a valid email address")
        return value.lower()


class UserLogin(BaseModel):
    username: str  # username or email
    password: str


class ProfileUpdate(BaseModel):
    first_name: Optional[str] = Field(default=None, max_length=50)
    last_name: Optional[str] = Field(default=None, max_length=50)
    bio: Optional[str] = Field(default=None, max_length=1000)


# --- Rating Schemas ---
class RatingCreate(BaseModel):
    rating: float


class Rating(BaseModel):
    rating_id: int
    user_id: int
    movie_id: int
    rating: float
    timestamp: Optional[datetime.datetime] = None
    movie: Optional[MovieSummary] = None

    class Config:
        from_attributes = True


# --- Review Schemas ---
class ReviewCreate(BaseModel):
    movie_id: int
    title: Optional[str] = Field(default=None, max_length=255)
    content: str = Field(min_length=1, max_length=5000)
    is_spoiler: Optional[bool] = False


class ReviewUpdate(BaseModel):
    title: Optional[str] = Field(default=None, max_length=255)
    content: Optional[str] = Field(default=None, max_length=5000)
    is_spoiler: Optional[bool] = None


class Review(BaseModel):
    review_id: int
    user_id: int
    movie_id: int
    title: Optional[str] = None
    content: str
    is_spoiler: bool = False
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None
    user: Optional[UserPublic] = None
    movie: Optional[MovieSummary] = None

    class Config:
        from_attributes = True


# --- Watchlist Schemas ---
class WatchlistCreate(BaseModel):
    movie_id: int


class WatchlistItem(BaseModel):
    watchlist_id: int
    user_id: int
    movie_id: int
    added_at: Optional[datetime.datetime] = None
    movie: Optional[MovieSummary] = None

    class Config:
        from_attributes = True


# --- Presentation ---
class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


# --- Recommendation Schemas ---
class RecommendationResponse(BaseModel):
    user_id: int
    movies: List[MovieWithRating]
    method_used: Optional[str] = None  # genre_affinity or top_rated_fallback
    genres: List[str] = []
