"""Network configuration constants for the marathon application."""

DEFAULT_HOST: str = "0.0.0.0"
DEFAULT_PORT: int = 8000
ADMIN_HEADER: str = "X-User-Id"
