#app\services\storage.py
import logging
import os
import uuid
from dataclasses import dataclass

import requests
from app.core.config import settings
from app.core.errors import InvalidType, TooLarge

logger = logging.getLogger(__name__)

ALLOWED = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "video/mp4": ".mp4",
    "video/webm": ".webm",
}
PUBLIC_PREFIX = "/uploads"

@dataclass
class StoredFile:
    url: str
    filename: str
    original_name: str | None
    mimetype: str
    size: int
    path: str

    def as_dict(self) -> dict:
        return {
            "url": self.url,
            "filename": self.filename,
            "original_name": self.original_name,
            "mimetype": self.mimetype,
            "size": self.size,
            "path": self.path,
        }

def validate_upload(content_type: str | None, size: int) -> None:
    if content_type not in ALLOWED:
        raise InvalidType()
    if size > settings.max_file_size:
        mb = settings.max_file_size // (1024 * 1024)
        raise TooLarge(f"File too large. Maximum size is {mb}MB")

def make_object_key(filename: str | None, content_type: str) -> str:
    ext = os.path.splitext(filename or "")[1].lower()
    if not ext or len(ext) > 6:
        ext = ALLOWED.get(content_type, "")
    return f"{uuid.uuid4().hex}{ext}"

def _upload_supabase(data: bytes, content_type: str, key: str) -> str:
    """Uploads to Supabase Storage via REST; returns public URL (bucket must be public)."""
    url = f"{settings.supabase_url}/storage/v1/object/{settings.supabase_bucket}/{key}"
    r = requests.post(url, headers={
        "Authorization": f"Bearer {settings.supabase_service_role}",
        "Content-Type": content_type,
        "x-upsert": "true",
    }, data=data, timeout=30)
    r.raise_for_status()
    return f"{settings.supabase_url}/storage/v1/object/public/{settings.supabase_bucket}/{key}"

def _save_local(data: bytes, key: str) -> str:
    os.makedirs(settings.upload_dir, exist_ok=True)
    path = os.path.join(settings.upload_dir, key)
    with open(path, "wb") as fh:
        fh.write(data)
    return path

def store(data: bytes, content_type: str | None, filename: str | None) -> StoredFile:
    validate_upload(content_type, len(data))
    key = make_object_key(filename, content_type)
    if settings.supabase_url and settings.supabase_service_role:
        url = _upload_supabase(data, content_type, key)
        path = url
    else:
        path = _save_local(data, key)
        url = f"{PUBLIC_PREFIX}/{key}"
    logger.info("Stored %s (%s, %d bytes)", key, content_type, len(data))
    return StoredFile(url=url, filename=key, original_name=filename, mimetype=content_type,
                      size=len(data), path=path)
