"""
Path helpers shared by the remux and cleanup workflows.

Covers directory scanning (in enumeration order, never sorted), the
thumbnail sidecar naming convention and filesystem-safe name handling.
"""
import re
from pathlib import Path
from typing import Iterable, List

from reelkit.utils import constants


def sanitize_filename(name: str) -> str:
    """
    Remove invalid filesystem characters from a name.
    Uses str.translate() for optimal performance.
    """
    invalid_chars = '<>:"/\\|?*'
    translation_table = str.maketrans('', '', invalid_chars)
    return name.translate(translation_table).strip()


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace into single spaces and trim both ends."""
    return re.sub(r"\s+", " ", text).strip()


def list_files(directory: Path, extensions: Iterable[str]) -> List[Path]:
    """
    Return regular, non-hidden files directly under `directory` whose suffix
    matches one of `extensions` (case-insensitive).

    Order is the directory enumeration order; callers must not assume it
    is alphabetical.
    """
    wanted = {ext.lower() for ext in extensions}
    return [
        p for p in Path(directory).iterdir()
        if not p.name.startswith(".") and p.is_file() and p.suffix.lower() in wanted
    ]


def sidecar_path(media: Path) -> Path:
    """Thumbnail path for a media file: <dir>/.video_info/<lowercased stem>.png"""
    return media.parent / constants.SIDECAR_DIR / f"{media.stem.lower()}{constants.SIDECAR_EXTENSION}"


def backup_path(media: Path) -> Path:
    """Archive path for a replaced original (extension appended, not replaced)."""
    return media.with_name(media.name + constants.BACKUP_SUFFIX)
