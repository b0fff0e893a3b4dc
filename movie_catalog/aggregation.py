# movie_catalog/aggregation.py
"""Read-time aggregates: top rated, new releases, per-genre listings and
catalog-wide statistics. Nothing computed here is ever written back."""
import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy import asc, case, desc, extract, func
from sqlalchemy.orm import Session

from . import models
from .presentation import format_rating
from .queries import MovieListParams, annotated_movies, list_movies, offset_for, resolve_sort

DEFAULT_TOP_RATED_LIMIT = 10
NEW_RELEASES_DEFAULT_SORT = "year-desc"
ACTIVITY_MONTHS = 12
TOP_USER_GENRES = 10

# Lower bound -> label, highest first. Anything below 2 lands in '0-1.9'.
RATING_BUCKETS = [
    (9, "9-10"),
    (8, "8-8.9"),
    (7, "7-7.9"),
    (6, "6-6.9"),
    (5, "5-5.9"),
    (4, "4-4.9"),
    (3, "3-3.9"),
    (2, "2-2.9"),
]
LOWEST_BUCKET = "0-1.9"


def get_top_rated(db: Session, limit: int = DEFAULT_TOP_RATED_LIMIT) -> list:
    """Movies with at least one rating, best average first, then most rated."""
    query, avg_col, count_col = annotated_movies(db)
    return (
        query.filter(count_col >= 1)
        .order_by(desc(avg_col), desc(count_col), asc(models.Movie.movie_id))
        .limit(limit)
        .all()
    )


def get_new_releases(db: Session, page: int, limit: int, sort: Optional[str] = None) -> Tuple[list, int]:
    params = MovieListParams(page=page, limit=limit, sort=resolve_sort(sort, NEW_RELEASES_DEFAULT_SORT))
    return list_movies(db, params, base_filters=[models.Movie.release_date.isnot(None)])


def get_movies_by_genre(db: Session, genre: str, page: int, limit: int) -> Tuple[list, int]:
    """Exact genre-name match, sorted by title, with a separate count query."""
    query, _, _ = annotated_movies(db)
    in_genre = models.Movie.genres.any(models.Genre.name == genre)
    rows = (
        query.filter(in_genre)
        .order_by(asc(models.Movie.title), asc(models.Movie.movie_id))
        .offset(offset_for(page, limit))
        .limit(limit)
        .all()
    )
    total = db.query(func.count(models.Movie.movie_id)).filter(in_genre).scalar() or 0
    return rows, total


# --- Catalog statistics ---

def _release_year():
    return extract("year", models.Movie.release_date)


def get_database_stats(db: Session) -> Dict:
    total_movies = db.query(func.count(models.Movie.movie_id)).scalar() or 0
    total_users = (
        db.query(func.count(models.User.user_id)).filter(models.User.is_active.is_(True)).scalar() or 0
    )
    total_genres = db.query(func.count(models.Genre.genre_id)).scalar() or 0

    avg_runtime, total_runtime = (
        db.query(func.avg(models.Movie.runtime_minutes), func.sum(models.Movie.runtime_minutes))
        .filter(models.Movie.runtime_minutes.isnot(None))
        .one()
    )
    oldest_year, latest_year = (
        db.query(func.min(_release_year()), func.max(_release_year()))
        .filter(models.Movie.release_date.isnot(None))
        .one()
    )
    avg_rating, total_ratings = db.query(
        func.avg(models.Rating.rating), func.count(models.Rating.rating_id)
    ).one()
    total_reviews = db.query(func.count(models.Review.review_id)).scalar() or 0

    return {
        "totalMovies": total_movies,
        "totalUsers": total_users,
        "totalGenres": total_genres,
        "avgRuntime": round(float(avg_runtime)) if avg_runtime else 0,
        "oldestYear": int(oldest_year) if oldest_year else 0,
        "latestYear": int(latest_year) if latest_year else 0,
        "totalRuntime": round(float(total_runtime) / 60) if total_runtime else 0,
        "avgRating": format_rating(avg_rating),
        "totalRatings": total_ratings or 0,
        "totalReviews": total_reviews,
    }


def get_years_with_multiple_releases(db: Session, limit: int = 20) -> List[Dict]:
    year = _release_year().label("year")
    count = func.count(models.Movie.movie_id).label("count")
    rows = (
        db.query(year, count)
        .filter(models.Movie.release_date.isnot(None))
        .group_by(year)
        .having(func.count(models.Movie.movie_id) > 1)
        .order_by(desc(count), desc(year))
        .limit(limit)
        .all()
    )
    return [{"year": int(r.year), "count": r.count} for r in rows]


def get_top_decades_by_runtime(db: Session, limit: int = 10) -> List[Dict]:
    decade = ((_release_year() // 10) * 10).label("decade")
    avg_runtime = func.avg(models.Movie.runtime_minutes).label("avgRuntime")
    rows = (
        db.query(decade, avg_runtime)
        .filter(models.Movie.release_date.isnot(None), models.Movie.runtime_minutes.isnot(None))
        .group_by(decade)
        .order_by(desc(avg_runtime))
        .limit(limit)
        .all()
    )
    return [{"decade": f"{int(r.decade)}s", "avgRuntime": round(float(r.avgRuntime))} for r in rows]


def get_genre_distribution(db: Session) -> List[Dict]:
    """Every genre with its movie count; genres without movies report 0."""
    count = func.count(models.movie_genres.c.movie_id).label("count")
    rows = (
        db.query(models.Genre.name, count)
        .outerjoin(models.movie_genres, models.movie_genres.c.genre_id == models.Genre.genre_id)
        .group_by(models.Genre.genre_id, models.Genre.name)
        .order_by(desc(count), asc(models.Genre.name))
        .all()
    )
    return [{"name": r.name, "count": r.count} for r in rows]


def rating_bucket_expr():
    return case(
        *[(models.Rating.rating >= lower, label) for lower, label in RATING_BUCKETS],
        else_=LOWEST_BUCKET,
    )


def get_rating_distribution(db: Session, user_id: Optional[int] = None) -> List[Dict]:
    bucket = rating_bucket_expr().label("rating_range")
    query = db.query(bucket, func.count(models.Rating.rating_id).label("count"))
    if user_id is not None:
        query = query.filter(models.Rating.user_id == user_id)
    rows = query.group_by(bucket).order_by(desc(bucket)).all()
    return [{"rating_range": r.rating_range, "count": r.count} for r in rows]


def get_user_genre_preferences(db: Session, user_id: int, limit: int = TOP_USER_GENRES) -> List[Dict]:
    count = func.count(models.Rating.rating_id).label("count")
    rows = (
        db.query(models.Genre.name, count)
        .join(models.movie_genres, models.movie_genres.c.genre_id == models.Genre.genre_id)
        .join(models.Rating, models.Rating.movie_id == models.movie_genres.c.movie_id)
        .filter(models.Rating.user_id == user_id)
        .group_by(models.Genre.genre_id, models.Genre.name)
        .order_by(desc(count), asc(models.Genre.name))
        .limit(limit)
        .all()
    )
    return [{"name": r.name, "count": r.count} for r in rows]


def get_activity_over_time(db: Session, user_id: int, months: int = ACTIVITY_MONTHS) -> List[Dict]:
    """Activity counts for the most recent calendar months that have any activity."""
    year = extract("year", models.UserActivity.timestamp).label("year")
    month = extract("month", models.UserActivity.timestamp).label("month")
    rows = (
        db.query(year, month, func.count(models.UserActivity.activity_id).label("count"))
        .filter(models.UserActivity.user_id == user_id)
        .group_by(year, month)
        .order_by(desc(year), desc(month))
        .limit(months)
        .all()
    )
    return [{"month": f"{int(r.year):04d}-{int(r.month):02d}", "count": r.count} for r in rows]


def get_user_activity_stats(db: Session, user_id: int) -> Dict:
    logging.info(f"Computing activity stats for user {user_id}")
    return {
        "ratingDistribution": get_rating_distribution(db, user_id=user_id),
        "genrePreferences": get_user_genre_preferences(db, user_id),
        "activityOverTime": get_activity_over_time(db, user_id),
    }
