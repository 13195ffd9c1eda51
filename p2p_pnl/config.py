"""Runtime configuration read from the environment."""

import logging
import os

# Database URL for the order store, default to local SQLite
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./p2p_orders.db")

# Timezone used for "now"/"today" and for normalizing offset-aware timestamps
REPORT_TIMEZONE = os.getenv("REPORT_TIMEZONE", "UTC")

# Default page size when fetching order history (rows 0..299)
ORDER_PAGE_SIZE = int(os.getenv("ORDER_PAGE_SIZE", "300"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = None) -> None:
    """Install a root handler for applications embedding the core."""
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format=LOG_FORMAT,
    )
