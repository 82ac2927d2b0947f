"""Exception taxonomy used inside the supervision components."""


class SupervisionError(Exception):
    """Base class for supervision errors."""


class InvalidDefinition(SupervisionError):
    """A raw unit definition lacks mandatory identity or topic fields."""


class DecodeFailure(SupervisionError):
    """A bus payload could not be decoded into the expected shape."""

    def __init__(self, topic: str, reason: str):
        super().__init__(f"cannot decode payload on '{topic}': {reason}")
        self.topic = topic
        self.reason = reason


class BusConnectionError(SupervisionError):
    """Bus-level failure reported by the broker connection."""
