from __future__ import annotations
import hashlib
import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def hash_user_id(user_id: str | None) -> str:
    """Short SHA-256 digest so phone numbers never reach the logs."""
    if not user_id:
        return "-"
    return hashlib.sha256(user_id.encode()).hexdigest()[:12]
