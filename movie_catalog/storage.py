# movie_catalog/storage.py
import logging
import os
import uuid

from fastapi import UploadFile

from . import config
from .errors import ValidationError

ALLOWED_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp"}
MAX_UPLOAD_BYTES = 5 * 1024 * 1024


def allowed_file(filename: str) -> bool:
    return "." in filename and filename.rsplit(".", 1)[1].lower() in ALLOWED_EXTENSIONS


def save_profile_picture(upload: UploadFile, upload_dir: str = None) -> str:
    """Stores an uploaded image under a random name and returns its public URL."""
    if upload is None or not upload.filename:
        raise ValidationError("No file uploaded")
    if not allowed_file(upload.filename):
        raise ValidationError(f"Invalid file type. Allowed file types are {sorted(ALLOWED_EXTENSIONS)}")

    content = upload.file.read()
    if len(content) > MAX_UPLOAD_BYTES:
        raise ValidationError("File is too large")

    target_dir = upload_dir or config.UPLOAD_DIR
    os.makedirs(target_dir, exist_ok=True)
    extension = upload.filename.rsplit(".", 1)[1].lower()
    filename = f"profile-{uuid.uuid4().hex}.{extension}"
    with open(os.path.join(target_dir, filename), "wb") as f:
        f.write(content)

    logging.info(f"Saved profile picture {filename} ({len(content)} bytes)")
    return f"{config.UPLOAD_URL_PREFIX}/{filename}"
