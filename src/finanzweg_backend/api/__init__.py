"""API layer modules exposed by the backend."""

from finanzweg_backend.api.app import create_api

__all__ = ["create_api"]
