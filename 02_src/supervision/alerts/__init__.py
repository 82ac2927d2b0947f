"""Alert pipeline module."""

from .buffer import AlertBuffer

__all__ = ["AlertBuffer"]
