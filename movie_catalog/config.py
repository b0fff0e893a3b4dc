# movie_catalog/config.py
import os
import logging
from dotenv import load_dotenv

logging.basicConfig(level=logging.INFO)

# --- Load .env from the project root (one level above this package) ---
package_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.dirname(package_dir)
dotenv_path = os.path.join(project_root, '.env')

if not load_dotenv(dotenv_path=dotenv_path):
    logging.info(f"No .env file loaded from {dotenv_path}; using process environment.")


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./movie_catalog.db")

JWT_SECRET = os.getenv("JWT_SECRET")
if not JWT_SECRET:
    logging.warning("JWT_SECRET not set. Falling back to an insecure development secret.")
    JWT_SECRET = "dev-secret-change-me"
JWT_ALGORITHM = "HS256"
JWT_EXPIRES_HOURS = int(os.getenv("JWT_EXPIRES_HOURS", "720"))

# Exposes stack traces in error responses
DEBUG = _flag("DEBUG", "false")

UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
UPLOAD_URL_PREFIX = "/uploads"

RATE_LIMIT_ENABLED = _flag("RATE_LIMIT_ENABLED", "true")
