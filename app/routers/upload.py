# File: app/routers/upload.py

from fastapi import APIRouter, Depends, File, Request, UploadFile
from app.core.config import settings
from app.core.errors import BadRequest
from app.core.ratelimit import limiter
from app.core.security import RequestContext, get_context
from app.schemas.common import ok
from app.services import storage

router = APIRouter(prefix="/upload", tags=["upload"])


@router.post("", status_code=201)
@limiter.limit("30/minute")
def upload(request: Request, file: UploadFile = File(...),
           ctx: RequestContext = Depends(get_context)):
    # storage.store blocks; a plain def keeps it off the event loop
    if not file.filename:
        raise BadRequest("No file uploaded", "NO_FILE")
    # one byte past the cap is enough to tell it is oversize
    data = file.file.read(settings.max_file_size + 1)
    stored = storage.store(data, file.content_type, file.filename)
    return ok(stored.as_dict(), "File uploaded successfully")
