"""Storage service — image uploads to Supabase Storage (prod) or local disk (dev).

Supabase bucket: SUPABASE_STORAGE_BUCKET (default recipe-images, must be
created in the Supabase dashboard and marked public).
Local fallback when Supabase is not configured: instance/uploads/.

A configured Supabase that fails is a DependencyError; uploads never fall
back to local disk in that case.
"""

import logging
import os
import uuid

import requests
from flask import current_app

from app.errors import DependencyError, InvalidUploadError

logger = logging.getLogger(__name__)

# Allowed MIME types -> stored file extension
ALLOWED_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}

LOCAL_URL_PREFIX = "/uploads/"


def _get_supabase_config():
    """Return Supabase storage config if available, else None."""
    url = current_app.config.get("SUPABASE_URL")
    key = current_app.config.get("SUPABASE_SERVICE_KEY")
    bucket = current_app.config.get("SUPABASE_STORAGE_BUCKET") or "recipe-images"

    if url and key:
        return {"url": url.rstrip("/"), "key": key, "bucket": bucket}
    return None


def _public_prefix(config):
    return f"{config['url']}/storage/v1/object/public/{config['bucket']}/"


def validate_image(file):
    """Validate an uploaded image (from request.files).

    Raises:
        InvalidUploadError: Missing, empty, too large or not an image.
    """
    if not file or not file.filename:
        raise InvalidUploadError("No file uploaded")

    content_type = (file.mimetype or "").lower()
    if content_type not in ALLOWED_TYPES:
        raise InvalidUploadError(
            "Only image files are allowed (jpeg, png, gif, webp)."
        )

    # Check file size (read + seek back)
    file.seek(0, os.SEEK_END)
    size = file.tell()
    file.seek(0)

    max_bytes = current_app.config["MAX_UPLOAD_BYTES"]
    if size > max_bytes:
        raise InvalidUploadError(
            f"File is too large ({size / (1024*1024):.1f} MB). "
            f"Maximum is {max_bytes // (1024*1024)} MB."
        )
    if size == 0:
        raise InvalidUploadError("File is empty.")


def upload_image(file, folder):
    """Validate and store an image; return its public URL.

    Args:
        file: Werkzeug FileStorage from request.files
        folder: Path prefix inside the bucket, e.g. "profiles/<user_id>"

    Raises:
        InvalidUploadError: File rejected by validate_image().
        DependencyError: Supabase configured but the upload failed.
    """
    validate_image(file)

    content_type = file.mimetype.lower()
    storage_path = f"{folder}/{uuid.uuid4().hex}{ALLOWED_TYPES[content_type]}"
    data = file.read()

    supabase = _get_supabase_config()
    if supabase:
        return _upload_supabase(supabase, storage_path, data, content_type)
    return _upload_local(storage_path, data)


def _upload_supabase(config, path, data, content_type):
    """Upload to Supabase Storage. Returns public URL."""
    url = f"{config['url']}/storage/v1/object/{config['bucket']}/{path}"

    headers = {
        "Authorization": f"Bearer {config['key']}",
        "Content-Type": content_type,
        "x-upsert": "true",
    }

    try:
        resp = requests.post(url, headers=headers, data=data, timeout=30)
        resp.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"Supabase upload failed for {path}: {e}")
        raise DependencyError("Image storage is unavailable, please try again")

    logger.info(f"Uploaded to Supabase: {path}")
    return _public_prefix(config) + path


def _upload_local(path, data):
    """Upload to local filesystem (dev fallback). Returns URL path."""
    upload_dir = os.path.join(
        current_app.instance_path, "uploads", os.path.dirname(path)
    )
    os.makedirs(upload_dir, exist_ok=True)

    filepath = os.path.join(current_app.instance_path, "uploads", path)
    with open(filepath, "wb") as f:
        f.write(data)

    logger.info(f"Uploaded locally: {filepath}")
    # Return a URL path that our Flask app can serve
    return f"{LOCAL_URL_PREFIX}{path}"


def storage_path_from_url(url):
    """Map a URL we issued back to its storage path, or None if foreign."""
    if not url:
        return None
    supabase = _get_supabase_config()
    if supabase and url.startswith(_public_prefix(supabase)):
        return url[len(_public_prefix(supabase)):]
    if url.startswith(LOCAL_URL_PREFIX):
        return url[len(LOCAL_URL_PREFIX):]
    return None


def delete_file(url):
    """Delete a previously uploaded file. Best-effort, does not raise."""
    storage_path = storage_path_from_url(url)
    if storage_path is None:
        return

    supabase = _get_supabase_config()
    if supabase:
        try:
            resp = requests.delete(
                f"{supabase['url']}/storage/v1/object/{supabase['bucket']}/{storage_path}",
                headers={"Authorization": f"Bearer {supabase['key']}"},
                timeout=10,
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.warning(f"Failed to delete {storage_path} from Supabase: {e}")
    else:
        filepath = os.path.join(current_app.instance_path, "uploads", storage_path)
        try:
            os.remove(filepath)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Failed to delete local file {filepath}: {e}")
