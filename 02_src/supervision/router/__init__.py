"""Message router module."""

from .router import MessageRouter, decode_object, parse_timestamp

__all__ = ["MessageRouter", "decode_object", "parse_timestamp"]
