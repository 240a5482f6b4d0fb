import logging
import os

import structlog
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("TEAMPLAYER_DATABASE_URL", "sqlite:///./teamplayer.db")
SQL_ECHO = os.getenv("TEAMPLAYER_SQL_ECHO", "false").lower() in ("1", "true", "yes")
LOG_LEVEL = os.getenv("TEAMPLAYER_LOG_LEVEL", "INFO").upper()


def configure_logging(level: str = None):
    """Set the structlog level filter. Call once at process start."""
    level_name = (level or LOG_LEVEL).upper()
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level_name, logging.INFO)
        ),
    )
