# File: app/schemas/common.py
"""Uniform response envelope: {success, data?, message?, error?, meta?}."""
import math
from typing import Any, Optional


def ok(data: Any = None, message: Optional[str] = None, meta: Optional[dict] = None) -> dict:
    body: dict = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    if meta is not None:
        body["meta"] = meta
    return body


def page_meta(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": math.ceil(total / limit) if limit else 0,
    }
