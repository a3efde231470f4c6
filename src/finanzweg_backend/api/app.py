"""Factory for constructing the FastAPI application."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from finanzweg_backend.api.routers import session_router
from finanzweg_backend.settings import get_settings


def create_api() -> FastAPI:
    """Instantiate and configure the FastAPI application."""
    settings = get_settings()
    app = FastAPI(title="Finanz-Weg API")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(session_router)
    return app
