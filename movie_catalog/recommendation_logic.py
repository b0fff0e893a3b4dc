# movie_catalog/recommendation_logic.py
import logging
from typing import List, Tuple

from sqlalchemy import asc, desc, func, select
from sqlalchemy.orm import Session

from . import models, schemas
from .aggregation import get_top_rated
from .presentation import movie_rows_payload
from .queries import annotated_movies

logging.basicConfig(level=logging.INFO)

# Ratings at or above this value count as "liked". The scale is 0-10.
HIGH_RATING_THRESHOLD = 4
LIKED_MOVIES_LIMIT = 10
PREFERRED_GENRES_LIMIT = 3
DEFAULT_RECOMMENDATIONS = 10


def get_highly_rated_movie_ids(db: Session, user_id: int) -> List[int]:
    """The user's top liked movies, highest rating first."""
    rows = (
        db.query(models.Rating.movie_id)
        .filter(models.Rating.user_id == user_id)
        .filter(models.Rating.rating >= HIGH_RATING_THRESHOLD)
        .order_by(desc(models.Rating.rating), asc(models.Rating.rating_id))
        .limit(LIKED_MOVIES_LIMIT)
        .all()
    )
    return [row.movie_id for row in rows]


def get_preferred_genres(db: Session, movie_ids: List[int]) -> List[str]:
    """Most frequent genres among the given movies."""
    if not movie_ids:
        return []
    count = func.count(models.movie_genres.c.movie_id).label("count")
    rows = (
        db.query(models.Genre.name, count)
        .join(models.movie_genres, models.movie_genres.c.genre_id == models.Genre.genre_id)
        .filter(models.movie_genres.c.movie_id.in_(movie_ids))
        .group_by(models.Genre.genre_id, models.Genre.name)
        .order_by(desc(count), asc(models.Genre.name))
        .limit(PREFERRED_GENRES_LIMIT)
        .all()
    )
    return [row.name for row in rows]


def get_genre_recommendations(db: Session, user_id: int, genres: List[str], n: int) -> list:
    """Unrated movies in any of ``genres``, best average first, then most rated."""
    rated_by_user = select(models.Rating.movie_id).where(models.Rating.user_id == user_id)
    query, avg_col, count_col = annotated_movies(db)
    return (
        # any() is an EXISTS, so a movie matching several genres appears once
        query.filter(models.Movie.genres.any(models.Genre.name.in_(genres)))
        .filter(~models.Movie.movie_id.in_(rated_by_user))
        .order_by(desc(avg_col), desc(count_col), asc(models.Movie.movie_id))
        .limit(n)
        .all()
    )


def recommend_for_user(db: Session, user_id: int, n: int = DEFAULT_RECOMMENDATIONS) -> Tuple[list, str, List[str]]:
    """Returns (rows, method_used, genres) where rows are (Movie, avgRating, ratingCount)."""
    liked_ids = get_highly_rated_movie_ids(db, user_id)
    if not liked_ids:
        logging.info(f"User {user_id} has no highly rated movies. Falling back to top rated.")
        return get_top_rated(db, limit=n), "top_rated_fallback", []

    genres = get_preferred_genres(db, liked_ids)
    if not genres:
        logging.info(f"No genres found for user {user_id}'s liked movies. Falling back to top rated.")
        return get_top_rated(db, limit=n), "top_rated_fallback", []

    return get_genre_recommendations(db, user_id, genres, n), "genre_affinity", genres


def generate_recommendations(db: Session, user_id: int, n: int = DEFAULT_RECOMMENDATIONS) -> schemas.RecommendationResponse:
    rows, method_used, genres = recommend_for_user(db, user_id, n)
    return schemas.RecommendationResponse(
        user_id=user_id,
        movies=movie_rows_payload(rows),
        method_used=method_used,
        genres=genres,
    )
