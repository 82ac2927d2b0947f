"""Main entry point for the CPS supervisor."""

import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from sim import Sim
from supervision.api import create_fastapi_app, get_engine
from supervision.logging_config import setup_logging


def main():
    """Run the supervisor."""
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")
    setup_logging()

    # Get configuration from environment
    api_host = os.getenv("API_HOST", "localhost")
    api_port = int(os.getenv("API_PORT", "8000"))

    engine = get_engine()

    # SIM publishes through the engine's own broker connection
    if os.getenv("SIM_ENABLED", "").lower() in ("1", "true", "yes"):
        from supervision.api.routes import control

        sim = Sim(bus=engine.bus, units=engine.descriptors)
        control.set_sim_instance(sim)

    app = create_fastapi_app()

    uvicorn.run(
        app,
        host=api_host,
        port=api_port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
