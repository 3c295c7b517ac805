"""Application entry point for the Classroom Companion server."""

from __future__ import annotations

import socket

from classroom_app.constants.about import APP_NAME
from classroom_app.core.classroom_manager import ClassroomManager
from classroom_app.core.generation.text_generator import GeminiTextGenerator
from classroom_app.core.services.entity_store import EntityStore
from classroom_app.core.storage.blob_store import JsonFileBlobStore
from classroom_app.server.api_server import run_api_server
from classroom_app.utils.logging_config import configure_logging
from classroom_app.utils.settings import Settings


def _determine_base_url(port: int) -> str:
    """Best-effort determination of the local IP for the URL shown to users."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(("8.8.8.8", 80))
            ip_address = sock.getsockname()[0]
    except OSError:
        ip_address = "127.0.0.1"
    return f"http://{ip_address}:{port}/"


def main() -> None:
    """Initialize logging, open the data store and serve the API."""
    logger = configure_logging()
    settings = Settings.from_env()
    logger.info("Starting %s with data in %s", APP_NAME, settings.data_dir)

    store = EntityStore(JsonFileBlobStore(settings.data_dir)).open()
    if store.load_warnings:
        logger.warning("Recovered from %d corrupted data file(s).", len(store.load_warnings))
    generator = GeminiTextGenerator(settings.google_api_key, settings.model_name)
    if not generator.is_configured:
        logger.warning("AI features will answer with errors until GOOGLE_API_KEY is set.")
    classroom_manager = ClassroomManager(store, generator)

    logger.info("API available at %s", _determine_base_url(settings.port))
    try:
        run_api_server(classroom_manager, host=settings.host, port=settings.port)
    finally:
        classroom_manager.close()


if __name__ == "__main__":
    main()
