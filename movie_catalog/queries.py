# movie_catalog/queries.py
"""Filter, sort and pagination building blocks for movie listings.

Every listing annotates movies with two correlated aggregates over the
ratings table, ``avgRating`` (0 when unrated) and ``ratingCount``, so the
same expressions can be filtered and sorted on in SQL.
"""
import datetime
from dataclasses import dataclass
from typing import List, Optional, Tuple

from sqlalchemy import asc, desc, func, select
from sqlalchemy.orm import Query, Session, selectinload

from . import models

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 8
DEFAULT_SORT = "title-asc"
SORT_KEYS = ("title-asc", "title-desc", "year-asc", "year-desc", "rating-asc", "rating-desc")


def avg_rating_expr():
    """COALESCE(AVG(rating), 0) for the enclosing movie row."""
    return (
        select(func.coalesce(func.avg(models.Rating.rating), 0))
        .where(models.Rating.movie_id == models.Movie.movie_id)
        .correlate(models.Movie)
        .scalar_subquery()
    )


def rating_count_expr():
    return (
        select(func.count(models.Rating.rating_id))
        .where(models.Rating.movie_id == models.Movie.movie_id)
        .correlate(models.Movie)
        .scalar_subquery()
    )


def annotated_movies(db: Session) -> Tuple[Query, object, object]:
    """Returns a (Movie, avgRating, ratingCount) query plus the two expressions."""
    avg_col = avg_rating_expr()
    count_col = rating_count_expr()
    query = (
        db.query(models.Movie, avg_col.label("avgRating"), count_col.label("ratingCount"))
        .options(selectinload(models.Movie.genres))
    )
    return query, avg_col, count_col


def resolve_sort(sort: Optional[str], default: str = DEFAULT_SORT) -> str:
    """Unknown sort keys fall back to the default."""
    return sort if sort in SORT_KEYS else default


def order_by_for(sort: str, avg_col):
    field, direction = sort.rsplit("-", 1)
    direction_fn = asc if direction == "asc" else desc
    if field == "title":
        column = models.Movie.title
    elif field == "year":
        column = models.Movie.release_date
    else:
        column = avg_col
    # movie_id keeps pages stable when the sort key ties
    return [direction_fn(column), asc(models.Movie.movie_id)]


def year_range(year: int) -> Tuple[datetime.date, datetime.date]:
    return datetime.date(year, 1, 1), datetime.date(year, 12, 31)


def offset_for(page: int, limit: int) -> int:
    return (page - 1) * limit


@dataclass
class MovieListParams:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    search: Optional[str] = None
    year: Optional[int] = None
    genre: Optional[str] = None
    min_rating: Optional[float] = None
    sort: str = DEFAULT_SORT


def apply_filters(query: Query, params: MovieListParams, avg_col) -> Query:
    if params.search:
        query = query.filter(models.Movie.title.ilike(f"%{params.search}%"))
    if params.year:
        start, end = year_range(params.year)
        query = query.filter(models.Movie.release_date.between(start, end))
    if params.genre:
        query = query.filter(models.Movie.genres.any(models.Genre.name.ilike(f"%{params.genre}%")))
    if params.min_rating is not None:
        query = query.filter(avg_col >= params.min_rating)
    return query


def list_movies(db: Session, params: MovieListParams, base_filters: List = ()) -> Tuple[list, int]:
    """Runs one filtered, sorted, paginated listing and its matching count.

    ``base_filters`` are extra SQL criteria fixed by the caller (for example
    "release date is known" for new releases).
    """
    query, avg_col, _ = annotated_movies(db)
    for criterion in base_filters:
        query = query.filter(criterion)
    query = apply_filters(query, params, avg_col)

    total = query.order_by(None).count()
    rows = (
        query.order_by(*order_by_for(resolve_sort(params.sort), avg_col))
        .offset(offset_for(params.page, params.limit))
        .limit(params.limit)
        .all()
    )
    return rows, total


def search_movies(db: Session, q: str, page: int, limit: int) -> Tuple[list, int]:
    """Case-insensitive substring match on title or overview, sorted by title."""
    query, _, _ = annotated_movies(db)
    pattern = f"%{q}%"
    query = query.filter(models.Movie.title.ilike(pattern) | models.Movie.overview.ilike(pattern))
    total = query.count()
    rows = (
        query.order_by(asc(models.Movie.title), asc(models.Movie.movie_id))
        .offset(offset_for(page, limit))
        .limit(limit)
        .all()
    )
    return rows, total
