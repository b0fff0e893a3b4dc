# movie_catalog/crud.py
import datetime
import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy import asc, desc, func, or_
from sqlalchemy.orm import Session, joinedload, selectinload

from . import auth, models, schemas
from .errors import AuthError, ConflictError, ForbiddenError, NotFoundError, ValidationError
from .presentation import format_rating
from .queries import annotated_movies, offset_for

MIN_RATING = 0.0
MAX_RATING = 10.0
REVIEW_SORT_FIELDS = ("created_at", "updated_at", "title")
WATCHLIST_SORT_FIELDS = ("added_at", "title", "release_date")
RECENT_ACTIVITY = 5


def _direction(sort_order: Optional[str]):
    return asc if (sort_order or "").upper() == "ASC" else desc


# --- User CRUD ---
def get_user(db: Session, user_id: int) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.user_id == user_id).first()


def get_user_or_404(db: Session, user_id: int) -> models.User:
    user = get_user(db, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def create_user(db: Session, user: schemas.UserRegister) -> models.User:
    existing = (
        db.query(models.User)
        .filter(or_(models.User.username == user.username, models.User.email == user.email))
        .first()
    )
    if existing:
        field = "Username" if existing.username == user.username else "Email"
        raise ConflictError(f"{field} already exists")

    db_user = models.User(
        username=user.username,
        email=user.email,
        password_hash=auth.hash_password(user.password),
        first_name=user.first_name,
        last_name=user.last_name,
        is_active=True,
        email_verified=False,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    logging.info(f"Registered user {db_user.user_id} ({db_user.username})")
    return db_user


def authenticate_user(db: Session, login: str, password: str) -> models.User:
    user = (
        db.query(models.User)
        .filter(or_(models.User.username == login, models.User.email == login.lower()))
        .first()
    )
    if not user or not auth.verify_password(password, user.password_hash):
        raise AuthError("Invalid credentials")
    if not user.is_active:
        raise AuthError("Account is deactivated")

    user.last_login = datetime.datetime.now(datetime.timezone.utc)
    db.commit()
    db.refresh(user)
    return user


def update_profile(db: Session, user: models.User, changes: schemas.ProfileUpdate) -> models.User:
    # Only non-empty supplied fields overwrite
    for field, value in changes.model_dump(exclude_unset=True).items():
        if value:
            setattr(user, field, value)
    db.commit()
    db.refresh(user)
    return user


def set_profile_picture(db: Session, user: models.User, url: str) -> models.User:
    user.profile_image_url = url
    db.commit()
    db.refresh(user)
    return user


def deactivate_user(db: Session, user: models.User) -> models.User:
    """Soft delete: the row stays, the account can no longer authenticate."""
    user.is_active = False
    db.commit()
    db.refresh(user)
    logging.info(f"Deactivated user {user.user_id}")
    return user


def get_user_profile(db: Session, user_id: int) -> Dict:
    user = get_user_or_404(db, user_id)

    total_ratings, average_rating = (
        db.query(func.count(models.Rating.rating_id), func.avg(models.Rating.rating))
        .filter(models.Rating.user_id == user_id)
        .one()
    )
    total_reviews = db.query(func.count(models.Review.review_id)).filter(models.Review.user_id == user_id).scalar()
    watchlist_count = (
        db.query(func.count(models.Watchlist.watchlist_id)).filter(models.Watchlist.user_id == user_id).scalar()
    )
    recent_ratings = (
        db.query(models.Rating).options(joinedload(models.Rating.movie))
        .filter(models.Rating.user_id == user_id)
        .order_by(desc(models.Rating.timestamp), desc(models.Rating.rating_id))
        .limit(RECENT_ACTIVITY)
        .all()
    )
    recent_reviews = (
        db.query(models.Review).options(joinedload(models.Review.movie))
        .filter(models.Review.user_id == user_id)
        .order_by(desc(models.Review.created_at), desc(models.Review.review_id))
        .limit(RECENT_ACTIVITY)
        .all()
    )

    return {
        "user": schemas.UserProfile.model_validate(user).model_dump(),
        "stats": {
            "totalRatings": total_ratings or 0,
            "totalReviews": total_reviews or 0,
            "watchlistCount": watchlist_count or 0,
            "averageRating": format_rating(average_rating),
        },
        "recentActivity": {
            "ratings": [schemas.Rating.model_validate(r).model_dump() for r in recent_ratings],
            "reviews": [schemas.Review.model_validate(r).model_dump() for r in recent_reviews],
        },
    }


# --- Movie CRUD ---
def get_movie(db: Session, movie_id: int) -> Optional[models.Movie]:
    return db.query(models.Movie).filter(models.Movie.movie_id == movie_id).first()


def get_movie_or_404(db: Session, movie_id: int) -> models.Movie:
    movie = get_movie(db, movie_id)
    if not movie:
        raise NotFoundError("Movie not found")
    return movie


def get_movie_detail(db: Session, movie_id: int, user: Optional[models.User] = None) -> schemas.MovieDetail:
    query, _, _ = annotated_movies(db)
    row = (
        query.options(
            selectinload(models.Movie.cast).joinedload(models.Cast.person),
            selectinload(models.Movie.crew).joinedload(models.Crew.person),
        )
        .filter(models.Movie.movie_id == movie_id)
        .first()
    )
    if row is None:
        raise NotFoundError("Movie not found")
    movie, avg_rating, rating_count = row

    user_rating = None
    in_watchlist = False
    if user is not None:
        rating = get_user_rating(db, user.user_id, movie_id)
        user_rating = rating.rating if rating else None
        in_watchlist = get_watchlist_item(db, user.user_id, movie_id) is not None

    return schemas.MovieDetail(
        **schemas.Movie.model_validate(movie).model_dump(),
        genres=[g.name for g in movie.genres],
        avgRating=format_rating(avg_rating),
        ratingCount=int(rating_count or 0),
        cast=[
            schemas.CastMember(
                person_id=c.person_id, name=c.person.name, character_name=c.character_name,
                cast_order=c.cast_order, profile_path=c.person.profile_path,
            )
            for c in movie.cast
        ],
        crew=[
            schemas.CrewMember(person_id=c.person_id, name=c.person.name, department=c.department, job=c.job)
            for c in movie.crew
        ],
        userRating=user_rating,
        isInWatchlist=in_watchlist,
    )


# --- Rating CRUD ---
def get_user_rating(db: Session, user_id: int, movie_id: int) -> Optional[models.Rating]:
    return (
        db.query(models.Rating)
        .filter(models.Rating.user_id == user_id, models.Rating.movie_id == movie_id)
        .first()
    )


def validate_rating(value) -> float:
    if value is None:
        raise ValidationError("Rating is required")
    if not MIN_RATING <= value <= MAX_RATING:
        raise ValidationError("Rating must be between 0 and 10")
    return round(float(value), 1)


def rate_movie(db: Session, user_id: int, movie_id: int, value: float) -> models.Rating:
    """Creates or updates the user's single rating for a movie and logs the activity."""
    value = validate_rating(value)
    get_movie_or_404(db, movie_id)

    # Check-then-act; a concurrent insert for the same pair hits the unique constraint
    db_rating = get_user_rating(db, user_id, movie_id)
    if db_rating:
        db_rating.rating = value
    else:
        db_rating = models.Rating(user_id=user_id, movie_id=movie_id, rating=value)
        db.add(db_rating)

    db.add(models.UserActivity(user_id=user_id, movie_id=movie_id, activity_type="rate"))
    db.commit()
    db.refresh(db_rating)
    logging.info(f"User {user_id} rated movie {movie_id}: {value}")
    return db_rating


def get_user_ratings(db: Session, user_id: int, page: int, limit: int) -> Tuple[List[models.Rating], int]:
    query = db.query(models.Rating).filter(models.Rating.user_id == user_id)
    total = query.count()
    rows = (
        query.options(joinedload(models.Rating.movie))
        .order_by(desc(models.Rating.timestamp), desc(models.Rating.rating_id))
        .offset(offset_for(page, limit))
        .limit(limit)
        .all()
    )
    return rows, total


# --- Review CRUD ---
def _review_query(db: Session):
    return db.query(models.Review).options(joinedload(models.Review.user), joinedload(models.Review.movie))


def get_review_or_404(db: Session, review_id: int) -> models.Review:
    review = _review_query(db).filter(models.Review.review_id == review_id).first()
    if not review:
        raise NotFoundError("Review not found")
    return review


def create_review(db: Session, user_id: int, review: schemas.ReviewCreate) -> models.Review:
    get_movie_or_404(db, review.movie_id)

    existing = (
        db.query(models.Review)
        .filter(models.Review.user_id == user_id, models.Review.movie_id == review.movie_id)
        .first()
    )
    if existing:
        raise ConflictError("You have already reviewed this movie")

    db_review = models.Review(
        user_id=user_id,
        movie_id=review.movie_id,
        title=review.title,
        content=review.content,
        is_spoiler=bool(review.is_spoiler),
    )
    db.add(db_review)
    db.commit()
    return get_review_or_404(db, db_review.review_id)


def _owned_review(db: Session, user_id: int, review_id: int, action: str) -> models.Review:
    review = get_review_or_404(db, review_id)
    if review.user_id != user_id:
        raise ForbiddenError(f"Not authorized to {action} this review")
    return review


def update_review(db: Session, user_id: int, review_id: int, changes: schemas.ReviewUpdate) -> models.Review:
    review = _owned_review(db, user_id, review_id, "update")
    data = changes.model_dump(exclude_unset=True)
    if data.get("title"):
        review.title = data["title"]
    if data.get("content"):
        review.content = data["content"]
    if data.get("is_spoiler") is not None:
        review.is_spoiler = data["is_spoiler"]
    db.commit()
    db.refresh(review)
    return review


def delete_review(db: Session, user_id: int, review_id: int) -> None:
    review = _owned_review(db, user_id, review_id, "delete")
    db.delete(review)
    db.commit()


def get_movie_reviews(
    db: Session, movie_id: int, page: int, limit: int,
    sort_by: Optional[str] = None, sort_order: Optional[str] = None,
) -> Tuple[List[models.Review], int]:
    get_movie_or_404(db, movie_id)
    field = sort_by if sort_by in REVIEW_SORT_FIELDS else "created_at"
    column = getattr(models.Review, field)

    query = db.query(models.Review).filter(models.Review.movie_id == movie_id)
    total = query.count()
    rows = (
        query.options(joinedload(models.Review.user))
        .order_by(_direction(sort_order)(column), desc(models.Review.review_id))
        .offset(offset_for(page, limit))
        .limit(limit)
        .all()
    )
    return rows, total


def get_user_reviews(db: Session, user_id: int, page: int, limit: int) -> Tuple[List[models.Review], int]:
    query = db.query(models.Review).filter(models.Review.user_id == user_id)
    total = query.count()
    rows = (
        query.options(joinedload(models.Review.movie))
        .order_by(desc(models.Review.created_at), desc(models.Review.review_id))
        .offset(offset_for(page, limit))
        .limit(limit)
        .all()
    )
    return rows, total


# --- Watchlist CRUD ---
def get_watchlist_item(db: Session, user_id: int, movie_id: int) -> Optional[models.Watchlist]:
    return (
        db.query(models.Watchlist)
        .filter(models.Watchlist.user_id == user_id, models.Watchlist.movie_id == movie_id)
        .first()
    )


def add_to_watchlist(db: Session, user_id: int, movie_id: int) -> models.Watchlist:
    get_movie_or_404(db, movie_id)
    if get_watchlist_item(db, user_id, movie_id):
        raise ConflictError("Movie is already in your watchlist")

    item = models.Watchlist(user_id=user_id, movie_id=movie_id)
    db.add(item)
    db.commit()
    return (
        db.query(models.Watchlist).options(joinedload(models.Watchlist.movie))
        .filter(models.Watchlist.watchlist_id == item.watchlist_id)
        .one()
    )


def remove_from_watchlist(db: Session, user_id: int, movie_id: int) -> None:
    item = get_watchlist_item(db, user_id, movie_id)
    if not item:
        raise NotFoundError("Movie not found in watchlist")
    db.delete(item)
    db.commit()


def get_watchlist(
    db: Session, user_id: int, page: int, limit: int,
    sort_by: Optional[str] = None, sort_order: Optional[str] = None,
) -> Tuple[List[models.Watchlist], int]:
    field = sort_by if sort_by in WATCHLIST_SORT_FIELDS else "added_at"
    direction = _direction(sort_order)

    query = db.query(models.Watchlist).filter(models.Watchlist.user_id == user_id)
    total = query.count()
    if field == "added_at":
        ordered = query.order_by(direction(models.Watchlist.added_at))
    else:
        ordered = query.join(models.Watchlist.movie).order_by(direction(getattr(models.Movie, field)))
    rows = (
        ordered.options(joinedload(models.Watchlist.movie))
        .order_by(desc(models.Watchlist.watchlist_id))
        .offset(offset_for(page, limit))
        .limit(limit)
        .all()
    )
    return rows, total
