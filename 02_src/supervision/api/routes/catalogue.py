"""Unit definition catalogue route."""

import os
from typing import Any

from fastapi import APIRouter, HTTPException

from ...config import resolve_defs_dir
from ...logging_config import get_logger
from ...registry import load_definitions_from_dir

logger = get_logger(__name__)


def create_catalogue_router() -> APIRouter:
    """Create catalogue router serving definitions from CPS_DEFS_DIR."""
    router = APIRouter(prefix="/api", tags=["catalogue"])

    @router.get("/cps")
    async def get_catalogue() -> dict[str, Any]:
        """All definition files as {"cps": [...]}."""
        defs_dir = resolve_defs_dir(os.getenv("CPS_DEFS_DIR"))
        try:
            return {"cps": load_definitions_from_dir(defs_dir)}
        except FileNotFoundError as e:
            logger.error("Catalogue unavailable: %s", e)
            raise HTTPException(status_code=500, detail=str(e))

    return router
