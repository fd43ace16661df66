import logging
import os
from dataclasses import dataclass
from typing import Tuple

from dotenv import load_dotenv

load_dotenv()

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    export_dir: str
    max_upload_bytes: int
    cors_origins: Tuple[str, ...]
    log_level: str


def get_settings() -> Settings:
    """Read settings from the environment (and .env) on every call."""
    origins = os.getenv("ALCHEMIST_CORS_ORIGINS", "*")
    return Settings(
        export_dir=os.getenv("ALCHEMIST_EXPORT_DIR", "exports"),
        max_upload_bytes=int(os.getenv("ALCHEMIST_MAX_UPLOAD_BYTES", str(10 * 1024 * 1024))),
        cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
        log_level=os.getenv("ALCHEMIST_LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str = None) -> None:
    logging.basicConfig(level=level or get_settings().log_level, format=LOG_FORMAT)
