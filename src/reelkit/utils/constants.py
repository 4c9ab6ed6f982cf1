"""
Constants and configuration settings for remuxing and filename cleanup.

Values that a user may want to change are read from the environment, after
loading a `.env` file from the working directory if one exists. Everything
else (status tags, codec allow-lists, sidecar layout) is fixed here so the
rest of the package has a single place to look them up.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Run settings
LOG_LEVEL = os.getenv("REELKIT_LOG_LEVEL", "INFO").upper()

# Container extensions for the remux workflow
SOURCE_EXTENSION = os.getenv("REELKIT_SOURCE_EXT", ".mkv").lower()
TARGET_EXTENSION = os.getenv("REELKIT_TARGET_EXT", ".mp4").lower()
BACKUP_SUFFIX = ".bak"

# Seconds between two samples of a running export
POLL_INTERVAL = float(os.getenv("REELKIT_POLL_INTERVAL", "0.1"))

# Number of proposed renames shown by default
PREVIEW_LIMIT = int(os.getenv("REELKIT_PREVIEW_LIMIT", "20"))

# Where persisted settings live (cleanup rules database)
DATA_DIR = Path(os.getenv("REELKIT_DATA_DIR", str(Path.home() / ".reelkit"))).expanduser()
RULES_DB_NAME = "cleanup_rules.db"

# Explicit tool locations, resolved against PATH when unset
FFMPEG_BINARY = os.getenv("REELKIT_FFMPEG")
FFPROBE_BINARY = os.getenv("REELKIT_FFPROBE")
HOMEBREW_BIN_DIRS = ("/opt/homebrew/bin", "/usr/local/bin")

# Per-directory thumbnail folder, thumbnails are keyed by lowercased stem
SIDECAR_DIR = ".video_info"
SIDECAR_EXTENSION = ".png"

# Accepted video file extensions for the cleanup workflow
VIDEO_EXTENSIONS = {".mkv", ".mp4", ".m4v", ".avi", ".mov", ".wmv", ".mpg", ".mpeg", ".webm"}

# Reason recorded for files the inspector rejects
SKIP_REASON_CODECS = "Incompatible codecs"

# Processing status codes
STATUS_OK = "OK"
STATUS_FAIL = "FAIL"
STATUS_SKIP = "SKIP"
