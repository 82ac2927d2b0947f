"""Project-level configuration and path helpers."""

import os
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DEFS_DIR = PROJECT_ROOT / "cps-defs"
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"

LOGS_DIR.mkdir(parents=True, exist_ok=True)

DEFAULT_ALERT_CAPACITY = 200
DEFAULT_AUTOLOAD_DELAY_MS = 3000


PathLike = Union[str, Path]


def resolve_defs_dir(env_value: PathLike | None = None) -> Path:
    """Resolve CPS_DEFS_DIR to an absolute path."""
    if not env_value:
        return DEFS_DIR

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def _default_client_id() -> str:
    return f"cps-supervisor-{uuid.uuid4().hex[:12]}"


@dataclass
class BusSettings:
    """MQTT broker connection settings."""

    host: str = "broker.hivemq.com"
    port: int = 1883
    transport: str = "tcp"  # "tcp" or "websockets"
    client_id: str = field(default_factory=_default_client_id)
    keepalive: int = 60
    reconnect_delay: int = 1

    @classmethod
    def from_env(cls) -> "BusSettings":
        """Build settings from MQTT_* environment variables."""
        return cls(
            host=os.getenv("MQTT_HOST", "broker.hivemq.com"),
            port=int(os.getenv("MQTT_PORT", "1883")),
            transport=os.getenv("MQTT_TRANSPORT", "tcp"),
            client_id=os.getenv("MQTT_CLIENT_ID") or _default_client_id(),
            keepalive=int(os.getenv("MQTT_KEEPALIVE", "60")),
            reconnect_delay=int(os.getenv("MQTT_RECONNECT_DELAY", "1")),
        )


def alert_capacity_from_env() -> int:
    """Alert buffer capacity (ALERT_CAPACITY)."""
    return int(os.getenv("ALERT_CAPACITY", str(DEFAULT_ALERT_CAPACITY)))


def autoload_delay_from_env() -> float:
    """Delay between auto-registered definitions, in seconds."""
    return int(os.getenv("CPS_AUTOLOAD_DELAY_MS", str(DEFAULT_AUTOLOAD_DELAY_MS))) / 1000
