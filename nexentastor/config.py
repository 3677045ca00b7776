"""
Configuration for the NexentaStor client.

Reads from environment variables with sensible defaults.
"""

import logging
from typing import List, Optional

from pydantic_settings import BaseSettings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

API_VARIANT_NEF = "nef"
API_VARIANT_ZEBI = "zebi"


class Settings(BaseSettings):
    """Client settings loaded from environment."""

    # Appliance connection, comma-separated list for multi-backend resolving
    address: str = ""
    username: str = "admin"
    password: str = ""

    # Wire dialect: "nef" (keyed REST) or "zebi" (positional RPC)
    api_variant: str = API_VARIANT_NEF

    # TLS - lab appliances usually run self-signed certificates
    insecure_skip_verify: bool = False

    # Transport
    request_timeout_seconds: int = 300

    # Appliance maximum page size, slices must stay strictly below it
    page_limit: int = 100

    # Async jobs (HTTP 202)
    job_poll_interval_seconds: float = 3
    job_timeout_seconds: float = 60
    wait_for_async_jobs: bool = True

    # Logging
    log_level: str = "INFO"

    class Config:
        env_prefix = "NEXENTASTOR_"

    def addresses(self) -> List[str]:
        """Configured appliance addresses, in order."""
        return [a.strip() for a in self.address.split(",") if a.strip()]


def configure_logging(level: Optional[str] = None):
    """Apply the client log format to the root logger."""
    logging.basicConfig(
        level=getattr(logging, (level or settings.log_level).upper()),
        format=LOG_FORMAT
    )


settings = Settings()
