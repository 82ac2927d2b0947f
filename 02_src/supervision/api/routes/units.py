"""Unit lifecycle API routes."""

from typing import Any

from fastapi import APIRouter, Body, HTTPException, Query

from ...engine import SupervisionEngine
from ...models import ErrorKind, Outcome
from ..schemas import (
    DescriptorResponse,
    RunStateRequest,
    StatusResponse,
    SummaryResponse,
    UnitResponse,
    descriptor_to_response,
    unit_to_response,
)

ERROR_STATUS = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.ALREADY_ACTIVE: 409,
    ErrorKind.INVALID_DEFINITION: 422,
    ErrorKind.INVALID_RUN_STATE: 400,
}


def raise_for_outcome(outcome: Outcome) -> None:
    """Map a failed Outcome to an HTTPException."""
    if not outcome:
        raise HTTPException(status_code=ERROR_STATUS[outcome.error], detail=outcome.detail)


def create_units_router(engine: SupervisionEngine) -> APIRouter:
    """Create units router."""
    router = APIRouter(prefix="/api/units", tags=["units"])

    @router.get("/available", response_model=list[str])
    async def available_units() -> list[str]:
        """Names of registered units."""
        return engine.names()

    @router.post("/register", response_model=DescriptorResponse)
    async def register_unit(definition: dict[str, Any] = Body(...)) -> dict:
        """Register one raw unit definition."""
        outcome = engine.register(definition)
        raise_for_outcome(outcome)
        return descriptor_to_response(outcome.value)

    @router.get("", response_model=list[UnitResponse])
    async def list_units() -> list[dict]:
        """Supervised units with run state and feature states."""
        return [unit_to_response(u) for u in engine.units()]

    @router.get("/summary", response_model=SummaryResponse)
    async def summary() -> dict:
        """Textual per-unit overview."""
        return {"summary": engine.operations_summary()}

    @router.get("/{name}/description", response_model=DescriptorResponse)
    async def describe_unit(name: str) -> dict:
        """Descriptor of a supervised or registered unit."""
        outcome = engine.describe(name)
        raise_for_outcome(outcome)
        return descriptor_to_response(outcome.value)

    @router.post("/{name}/add", response_model=UnitResponse)
    async def add_unit(
        name: str,
        start_running: bool = Query(True, description="Enter supervision running"),
    ) -> dict:
        """Start supervising a registered unit."""
        outcome = engine.add(name, start_running=start_running)
        raise_for_outcome(outcome)
        return unit_to_response(outcome.value)

    @router.delete("/{name}", response_model=StatusResponse)
    async def remove_unit(name: str) -> dict:
        """Stop supervising a unit."""
        raise_for_outcome(engine.remove(name))
        return {"status": "ok"}

    @router.post("/{unit_id}/run-state", response_model=UnitResponse)
    async def set_run_state(unit_id: str, request: RunStateRequest) -> dict:
        """Switch a unit between running and stopped."""
        outcome = engine.set_run_state(unit_id, request.state.lower())
        raise_for_outcome(outcome)
        return unit_to_response(outcome.value)

    @router.post("/{name}/unplug", response_model=StatusResponse)
    async def unplug_unit(name: str) -> dict:
        """Remove a unit from supervision and from the registry."""
        raise_for_outcome(engine.unplug(name))
        return {"status": "ok"}

    return router
