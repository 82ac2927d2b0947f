"""Alert API routes."""

from fastapi import APIRouter, HTTPException

from ...engine import SupervisionEngine
from ..schemas import AlertResponse, StatusResponse, alert_to_response


def create_alerts_router(engine: SupervisionEngine) -> APIRouter:
    """Create alerts router."""
    router = APIRouter(prefix="/api/alerts", tags=["alerts"])

    @router.get("", response_model=list[AlertResponse])
    async def list_alerts() -> list[dict]:
        """Alerts, newest first."""
        return [alert_to_response(a) for a in engine.alerts()]

    @router.post("/{alert_id}/ack", response_model=StatusResponse)
    async def acknowledge_alert(alert_id: str) -> dict:
        """Dismiss an alert."""
        if not engine.acknowledge(alert_id):
            raise HTTPException(status_code=404, detail=f"No alert {alert_id}")
        return {"status": "ok"}

    @router.delete("", response_model=StatusResponse)
    async def clear_alerts() -> dict:
        """Dismiss every alert."""
        engine.clear_alerts()
        return {"status": "ok"}

    return router
