# src/routescore/api/app.py
"""
FastAPI application wiring.

This file creates the `FastAPI` instance and CORS policy for the dashboard frontends.
Business logic lives in `routescore.api.routes` and `routescore.planner`.
"""

from __future__ import annotations

import os

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from routescore.core.logging import configure_logging

from .routes import router

configure_logging()

app = FastAPI(title="RouteScore API", version="0.1.0")

# CORS (dev-friendly): allow local dashboards (e.g. http://localhost:3000) to call this API.
# Configure via env:
# - ROUTESCORE_CORS_ORIGINS="http://localhost:3000,http://127.0.0.1:3000"
# - ROUTESCORE_CORS_ALLOW_LOCAL=0 to disable the default localhost allowance
cors_origins = [s.strip() for s in os.getenv("ROUTESCORE_CORS_ORIGINS", "").split(",") if s.strip()]
cors_allow_local = os.getenv("ROUTESCORE_CORS_ALLOW_LOCAL", "1").strip().lower() in {"1", "true", "yes", "y"}
cors_origin_regex = r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$" if cors_allow_local and not cors_origins else ""
if cors_origins or cors_origin_regex:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_origin_regex=cors_origin_regex or None,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(router)
