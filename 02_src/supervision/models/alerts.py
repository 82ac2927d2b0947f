"""Alert data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class Severity(str, Enum):
    """Alert severity."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def parse(cls, value: Any, default: "Severity") -> "Severity":
        """Coerce a payload value, falling back to default when unrecognised."""
        try:
            return cls(str(value).lower())
        except ValueError:
            return default


@dataclass(frozen=True)
class Alert:
    """A raised condition requiring operator attention."""

    id: str
    unit_id: str
    unit_name: str
    component: str
    severity: Severity
    timestamp: datetime
    raw: Any = field(default=None, compare=False)
