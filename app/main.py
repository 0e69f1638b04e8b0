# File: app/main.py
# Project: citywatch-backend

import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from slowapi.middleware import SlowAPIMiddleware

from app.core.config import cors_origins_list, settings
from app.core.errors import register_error_handlers
from app.core.logging import configure_logging
from app.core.ratelimit import limiter
from app.routers import admin, auth, issues, moderation, otp, taxonomy, upload
from app.services.storage import PUBLIC_PREFIX

configure_logging(settings.log_level, settings.log_dir)
logger = logging.getLogger("app.main")

app = FastAPI(title="CityWatch API")
app.state.limiter = limiter
register_error_handlers(app)
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

os.makedirs(settings.upload_dir, exist_ok=True)
app.mount(PUBLIC_PREFIX, StaticFiles(directory=settings.upload_dir), name="uploads")

@app.get("/health")
def health():
    return {"success": True, "data": {"status": "ok", "environment": settings.environment}}

for module in (auth, otp, issues, moderation, admin, upload, taxonomy):
    app.include_router(module.router, prefix=settings.api_prefix)

logger.info("CityWatch API ready (%s)", settings.environment)
