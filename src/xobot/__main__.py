"""Entry point for running xobot via ``python -m xobot``."""

from __future__ import annotations

import logging
import os

import uvicorn


def main() -> None:
    """Start the FastAPI-powered xobot web server."""

    level = os.environ.get("XOBOT_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(message)s")

    host = os.environ.get("XOBOT_HOST", "0.0.0.0")
    port = int(os.environ.get("XOBOT_PORT", "8000"))
    uvicorn.run("xobot.ui:app", host=host, port=port, reload=False, log_level=level.lower())


if __name__ == "__main__":
    main()
