"""REST API module."""

from .app import create_fastapi_app, get_engine, set_engine

__all__ = ["create_fastapi_app", "get_engine", "set_engine"]
