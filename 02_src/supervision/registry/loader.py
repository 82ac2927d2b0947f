"""Sourcing of raw unit definitions from a directory or an HTTP catalogue."""

import asyncio
import json
from pathlib import Path
from typing import Any, Callable

import httpx

from ..logging_config import get_logger

logger = get_logger(__name__)


def load_definitions_from_dir(directory: str | Path) -> list[dict]:
    """Read every *.json file in a directory (sorted by name)."""
    path = Path(directory)
    if not path.is_dir():
        raise FileNotFoundError(f"Definitions directory not found: {path}")

    definitions = []
    for file in sorted(path.glob("*.json")):
        try:
            with open(file, "r", encoding="utf-8") as f:
                definitions.append(json.load(f))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Skipping definition file %s: %s", file.name, e)
    return definitions


async def fetch_definitions(url: str, timeout: float = 10.0) -> list[dict]:
    """Fetch {"cps": [...]} from an HTTP catalogue."""
    async with httpx.AsyncClient(timeout=timeout) as client:
        response = await client.get(url)
        response.raise_for_status()
        data = response.json()
    items = data.get("cps") if isinstance(data, dict) else None
    return items if isinstance(items, list) else []


async def autoload(
    register: Callable[[Any], Any],
    definitions: list[dict],
    delay: float = 0.0,
) -> int:
    """
    Register definitions one at a time.

    Definition N (0-based) is registered delay * (N + 1) seconds after the
    call, so units appear in waves. Returns how many were accepted.
    """
    accepted = 0
    for raw in definitions:
        if delay:
            await asyncio.sleep(delay)
        if register(raw):
            accepted += 1
    logger.info("Autoload registered %d/%d definitions", accepted, len(definitions))
    return accepted
