"""Infrastructure and technical constants."""

from typing import Final

# Technical configuration constants
DEFAULT_PORT: Final = 8000
DEFAULT_METRICS_PORT: Final = 8080
DEFAULT_ADMIN_API_VERSION: Final = "2025-01"
DEFAULT_ADMIN_API_TIMEOUT_SECONDS: Final = 30.0
DEFAULT_REFRESH_DEBOUNCE_SECONDS: Final = 0.05
