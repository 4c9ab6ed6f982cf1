"""
Constants, logging, and small filesystem/system helpers shared by the
remux and rename packages.
"""

from .constants import (
    BACKUP_SUFFIX,
    DATA_DIR,
    LOG_LEVEL,
    POLL_INTERVAL,
    PREVIEW_LIMIT,
    RULES_DB_NAME,
    SIDECAR_DIR,
    SKIP_REASON_CODECS,
    SOURCE_EXTENSION,
    STATUS_FAIL,
    STATUS_OK,
    STATUS_SKIP,
    TARGET_EXTENSION,
    VIDEO_EXTENSIONS,
)
from .logger import LogLevel

__all__ = [
    "LOG_LEVEL",
    "SOURCE_EXTENSION",
    "TARGET_EXTENSION",
    "BACKUP_SUFFIX",
    "POLL_INTERVAL",
    "PREVIEW_LIMIT",
    "DATA_DIR",
    "RULES_DB_NAME",
    "SIDECAR_DIR",
    "VIDEO_EXTENSIONS",
    "SKIP_REASON_CODECS",
    "STATUS_OK",
    "STATUS_FAIL",
    "STATUS_SKIP",
    "LogLevel",
]
