"""
Rename preview.

Computes which files a cleaner would rename, without touching the disk.
The preview keeps the input order, and the apply step must consume the
changes in that same order.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from reelkit.rename.rules import FilenameCleaner
from reelkit.utils import PREVIEW_LIMIT, LogLevel, logger

DEFAULT_PREVIEW_LIMIT = PREVIEW_LIMIT


@dataclass(frozen=True)
class RenameChange:
    original: Path
    cleaned: Path


@dataclass(frozen=True)
class PreviewResult:
    changes: List[RenameChange] = field(default_factory=list)
    total_matches: int = 0


def preview_changes(
        files: Iterable[Path],
        cleaner: FilenameCleaner,
        limit: Optional[int] = DEFAULT_PREVIEW_LIMIT,
) -> PreviewResult:
    """
    Propose cleaned names for `files`.

    Every file is examined, so `total_matches` counts all files whose name
    would change; `changes` holds the first `limit` of them in input order
    (`limit=None` means all of them).
    """
    if limit is not None and limit < 0:
        raise ValueError(f"limit must be >= 0 or None, got {limit}")

    changes: List[RenameChange] = []
    total = 0
    for path in files:
        path = Path(path)
        cleaned_name = cleaner.clean_filename(path.name)
        if cleaned_name == path.name:
            continue

        total += 1
        logger.log("rename.propose", LogLevel.TRACE, file=path.name, cleaned=cleaned_name)
        if limit is None or len(changes) < limit:
            changes.append(RenameChange(path, path.with_name(cleaned_name)))

    logger.log("rename.preview", LogLevel.DEBUG, matches=total, shown=len(changes), rules=len(cleaner.rules))
    return PreviewResult(changes=changes, total_matches=total)
