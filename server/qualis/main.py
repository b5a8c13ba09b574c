from __future__ import annotations
"""server/qualis/main.py
~~~~~~~~~~~~~~~~~~~~~~~~
FastAPI entry point.
"""
from typing import List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from qualis.api.v1.router import api_router
from qualis.core.config import settings
from qualis.core.logging import setup_logging
from qualis.core.middleware import install_global_middleware

setup_logging()

app = FastAPI(title="Qualis Workflow Server", version="0.1.0")

allow_origins: List[str] = []
if origins := getattr(settings, "CORS_ALLOW_ORIGINS", None):
    allow_origins = [o.strip() for o in origins.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

install_global_middleware(app)

app.include_router(api_router, prefix="/api/v1")
