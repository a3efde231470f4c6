"""Route definitions for the public WebSocket endpoint."""

from finanzweg_backend.api.routers.session import router as session_router

__all__ = ["session_router"]
