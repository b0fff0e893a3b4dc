# movie_catalog/presentation.py
import math
from typing import Any, Dict, Optional

from . import models, schemas


def envelope(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return body


def pagination(page: int, limit: int, total: int) -> Dict[str, int]:
    return schemas.Pagination(
        page=page,
        limit=limit,
        total=total,
        pages=math.ceil(total / limit) if limit else 0,
    ).model_dump()


def format_rating(value) -> float:
    """Average ratings are shown with one decimal place."""
    return round(float(value or 0), 1)


def movie_payload(movie: models.Movie, avg_rating=None, rating_count=None) -> Dict[str, Any]:
    payload = schemas.MovieWithRating(
        **schemas.Movie.model_validate(movie).model_dump(),
        genres=[g.name for g in movie.genres],
        avgRating=format_rating(avg_rating),
        ratingCount=int(rating_count or 0),
    )
    return payload.model_dump()


def movie_rows_payload(rows) -> list:
    """Shapes (Movie, avgRating, ratingCount) rows."""
    return [movie_payload(movie, avg, count) for movie, avg, count in rows]
