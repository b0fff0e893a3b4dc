# movie_catalog/main.py
import contextlib
import logging
import os

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from . import config
from .database import init_db
from .errors import register_error_handlers
from .rate_limit import limiter
from .routers import auth, movies, reviews, stats, users, watchlists

logging.basicConfig(level=logging.INFO)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    logging.info("Application startup...")
    init_db()
    os.makedirs(config.UPLOAD_DIR, exist_ok=True)
    logging.info("Application startup complete.")
    yield
    logging.info("Application shutdown complete.")


app = FastAPI(title="Movie Catalog API", lifespan=lifespan)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
register_error_handlers(app)

for module in (auth, movies, reviews, stats, users, watchlists):
    app.include_router(module.router)

app.mount(config.UPLOAD_URL_PREFIX, StaticFiles(directory=config.UPLOAD_DIR, check_dir=False), name="uploads")


@app.get("/")
def read_root():
    return {"success": True, "message": "Welcome to the Movie Catalog API"}
