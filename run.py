"""Entry point for the DevCamper API server.

Launches the FastAPI application with Uvicorn.  It is intended to be
executed from the project root, e.g. under Docker, where you only
specify a single Python file to run.

Host and port are read from the environment variables ``API_HOST`` and
``API_PORT``; everything else (database, secret key, geocoder key) is
configured as described in ``devcamper_api.app.core.config``.

Usage:
    python run.py
"""
import asyncio
import logging
import os

from uvicorn import Config, Server

from devcamper_api.app.main import app


async def run_api() -> None:
    """Start the API using Uvicorn.

    Defaults are ``0.0.0.0`` and ``5000``.
    """
    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "5000"))
    config = Config(app=app, host=host, port=port, reload=False, log_level="info")
    server = Server(config)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(run_api())
    except (KeyboardInterrupt, SystemExit):
        logging.getLogger(__name__).info("Server stopped")
