from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from speech_auth.api.errors import register_exception_handlers
from speech_auth.api.guard import (
    ACCESS_TOKEN_EXPIRY_HEADER,
    ACCESS_TOKEN_HEADER,
    CLIENT_TYPE_HEADER,
    REFRESH_TOKEN_EXPIRY_HEADER,
    REFRESH_TOKEN_HEADER,
)
from speech_auth.api.routers import auth, health, users
from speech_auth.shared.config import get_settings
from speech_auth.shared.log_config import configure_logging


settings = get_settings()
configure_logging(settings)

app = FastAPI(title="Speech Auth API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_allow_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "accept-language",
        CLIENT_TYPE_HEADER,
        REFRESH_TOKEN_HEADER,
    ],
    expose_headers=[
        ACCESS_TOKEN_HEADER,
        REFRESH_TOKEN_HEADER,
        ACCESS_TOKEN_EXPIRY_HEADER,
        REFRESH_TOKEN_EXPIRY_HEADER,
    ],
)
register_exception_handlers(app)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(users.router)
