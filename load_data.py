# load_data.py
import datetime
import logging
import os
import sys
from typing import Dict, List, Optional, Set, Tuple

import pandas as pd
from sqlalchemy.orm import Session

from movie_catalog import models
from movie_catalog.database import SessionLocal, init_db

logging.basicConfig(level=logging.INFO)

DATA_DIR = 'data'
MOVIES_FILE = os.getenv("MOVIES_FILE", f'{DATA_DIR}/movies.csv')
GENRE_SEPARATOR = '|'


def _clean(value):
    """pandas gives NaN for empty cells; the ORM wants None."""
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    return value


def _parse_date(value) -> Optional[datetime.date]:
    value = _clean(value)
    if value is None:
        return None
    return pd.to_datetime(value).date()


def _int_or_none(value) -> Optional[int]:
    value = _clean(value)
    return int(value) if value is not None else None


def get_or_create_genres(db: Session, names: List[str], cache: Dict[str, models.Genre]) -> List[models.Genre]:
    genres = []
    for name in names:
        if name not in cache:
            genre = db.query(models.Genre).filter(models.Genre.name == name).first()
            if not genre:
                genre = models.Genre(name=name)
                db.add(genre)
            cache[name] = genre
        genres.append(cache[name])
    return genres


def load_movies(db: Session, movies_df: pd.DataFrame) -> int:
    """Inserts movies (and their genres) that are not in the catalog yet. Returns the count added."""
    logging.info(f"Processing {len(movies_df)} movie rows...")
    genre_cache: Dict[str, models.Genre] = {}
    seen: Set[Tuple[str, Optional[datetime.date]]] = set()
    added = 0

    for _, row in movies_df.iterrows():
        title = _clean(row.get('title'))
        if not title:
            logging.warning("Skipping row without a title.")
            continue

        release_date = _parse_date(row.get('release_date'))
        exists = (
            db.query(models.Movie)
            .filter(models.Movie.title == title, models.Movie.release_date == release_date)
            .first()
        )
        if exists or (title, release_date) in seen:
            continue
        seen.add((title, release_date))

        movie = models.Movie(
            title=title,
            original_title=_clean(row.get('original_title')),
            tagline=_clean(row.get('tagline')),
            overview=_clean(row.get('overview')),
            release_date=release_date,
            runtime_minutes=_int_or_none(row.get('runtime_minutes')),
            budget=_int_or_none(row.get('budget')),
            revenue=_int_or_none(row.get('revenue')),
            poster_path=_clean(row.get('poster_path')),
            imdb_id=_clean(row.get('imdb_id')),
        )
        genre_field = _clean(row.get('genres')) or ''
        names = [g.strip() for g in str(genre_field).split(GENRE_SEPARATOR) if g.strip()]
        movie.genres = get_or_create_genres(db, names, genre_cache)
        db.add(movie)
        added += 1

    db.commit()
    logging.info(f"Loaded {added} new movies.")
    return added


def read_movies_csv(path: str) -> pd.DataFrame:
    movies_df = pd.read_csv(path)
    missing = [c for c in ('title',) if c not in movies_df.columns]
    if missing:
        raise ValueError(f"Movies file {path} is missing columns: {missing}")
    return movies_df


if __name__ == "__main__":
    path = sys.argv[1] if len(sys.argv) > 1 else MOVIES_FILE
    init_db()
    db = SessionLocal()
    try:
        load_movies(db, read_movies_csv(path))
    except FileNotFoundError:
        logging.error(f"Movies file not found: {path}")
    finally:
        db.close()
