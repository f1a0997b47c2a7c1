"""
Logging Setup — console and file handlers under LOG_DIR.
"""
import logging
import os

from topup.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"


def configure_logging(settings: Settings) -> None:
    """Attach console and file handlers to the ``topup`` logger once."""
    root = logging.getLogger("topup")
    root.setLevel(settings.LOG_LEVEL.upper())
    if root.handlers:
        return

    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    os.makedirs(settings.LOG_DIR, exist_ok=True)
    file_handler = logging.FileHandler(os.path.join(settings.LOG_DIR, "server.log"), encoding="utf-8")
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)
