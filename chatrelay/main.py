"""Command-line entry point for the chat relay.

Two run modes, picked with RUN_MODE:

- ``integrated`` (default): one uvicorn server on PORT with the NiceGUI page
  mounted onto the relay app.
- ``separate``: the relay API on PORT and the chat page on UI_PORT, each in
  its own process.

Settings come from the environment, after .env has been loaded.
"""

import asyncio
import logging
import os
import subprocess
import sys
from enum import Enum

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

load_dotenv()

logger = logging.getLogger(__name__)


class RunMode(str, Enum):
    INTEGRATED = "integrated"
    SEPARATE = "separate"


class ServerSettings(BaseModel):
    """Process-level settings for serving the relay and the chat page."""

    model_config = ConfigDict(validate_default=True)

    host: str = Field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = Field(default_factory=lambda: int(os.getenv("PORT", "8000")), gt=0)
    ui_port: int = Field(default_factory=lambda: int(os.getenv("UI_PORT", "8080")), gt=0)
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    mode: RunMode = Field(
        default_factory=lambda: RunMode(os.getenv("RUN_MODE", "integrated").lower())
    )
    storage_secret: str = Field(
        default_factory=lambda: os.getenv("NICEGUI_STORAGE_SECRET", "chatrelay-secret")
    )


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def run_integrated(settings: ServerSettings) -> None:
    """Serve the relay and the chat page from one process.

    The page reaches the relay over API_BASE_URL, which defaults to this
    same server.
    """
    import uvicorn
    from nicegui import ui

    from chatrelay.api.app import create_app
    from chatrelay.ui.chat_page import chat_page  # noqa: F401 - Registers the page

    app = create_app()
    ui.run_with(app, title="Chat Relay", favicon="💬", storage_secret=settings.storage_secret)

    logger.info(f"Chat UI on http://localhost:{settings.port}/")
    logger.info(f"Relay endpoint: POST http://localhost:{settings.port}/chat")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


async def _supervise(procs: list[subprocess.Popen]) -> None:
    """Wait until any child exits, then stop the rest."""
    try:
        while all(proc.poll() is None for proc in procs):
            await asyncio.sleep(1)
    finally:
        logger.info("Stopping servers...")
        for proc in procs:
            proc.terminate()
        for proc in procs:
            proc.wait()


def run_separate(settings: ServerSettings) -> None:
    """Run the relay API and the chat page as two child processes."""
    api_cmd = [
        sys.executable, "-m", "uvicorn", "chatrelay.api.app:app",
        "--host", settings.host, "--port", str(settings.port),
    ]
    ui_cmd = [sys.executable, "-m", "chatrelay.ui.chat_page"]

    logger.info(f"Relay API on http://localhost:{settings.port}")
    logger.info(f"Chat UI on http://localhost:{settings.ui_port}")
    procs = [subprocess.Popen(api_cmd), subprocess.Popen(ui_cmd)]
    try:
        asyncio.run(_supervise(procs))
    except KeyboardInterrupt:
        logger.info("Interrupted")


def main() -> None:
    settings = ServerSettings()
    configure_logging(settings.log_level)
    logger.info(f"Starting chat relay in {settings.mode.value} mode")

    if settings.mode is RunMode.SEPARATE:
        run_separate(settings)
    else:
        run_integrated(settings)


if __name__ == "__main__":
    main()
