"""Discriminated results for lifecycle operations."""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Lifecycle error kinds surfaced to callers."""

    INVALID_DEFINITION = "invalid_definition"
    NOT_FOUND = "not_found"
    ALREADY_ACTIVE = "already_active"
    INVALID_RUN_STATE = "invalid_run_state"


@dataclass(frozen=True)
class Outcome:
    """Result of a lifecycle call: a value or an error kind."""

    value: Any = None
    error: ErrorKind | None = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, value: Any = None) -> "Outcome":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ErrorKind, detail: str = "") -> "Outcome":
        return cls(error=error, detail=detail)
