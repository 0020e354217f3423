"""Application entry point for the reading marathon server."""

from __future__ import annotations

import socket

from marathon_app.core.marathon_manager import MarathonManager
from marathon_app.core.services.daily_reflection import DailyReflectionService
from marathon_app.core.snapshot_store import JsonSnapshotStore
from marathon_app.server.api_server import start_api_server
from marathon_app.utils.logging_config import configure_logging
from marathon_app.utils.settings import AppSettings


def _determine_public_url(port: int) -> str:
    """Best-effort determination of the local IP for the participant-facing URL."""
    # A UDP connect sends nothing; it only picks the outbound interface.
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(("8.8.8.8", 80))
            ip_address = sock.getsockname()[0]
    except OSError:
        ip_address = "127.0.0.1"
    return f"http://{ip_address}:{port}/"


def main() -> None:
    """Initialize logging, restore stored state, and serve the API until interrupted."""
    settings = AppSettings()
    logger = configure_logging(settings.log_level)
    logger.info("Starting reading marathon server")

    store = JsonSnapshotStore(settings.data_path) if settings.data_path else None
    marathon_manager = MarathonManager(store=store)
    reflection_service = DailyReflectionService.from_api_key(
        settings.openai_key_value,
        model=settings.reflection_model,
    )
    server_thread = start_api_server(
        marathon_manager=marathon_manager,
        reflection_service=reflection_service,
        host=settings.host,
        port=settings.port,
    )
    logger.info("API available at %s", _determine_public_url(settings.port))

    try:
        server_thread.join()
    except KeyboardInterrupt:
        logger.info("Shutting down")


if __name__ == "__main__":
    main()
