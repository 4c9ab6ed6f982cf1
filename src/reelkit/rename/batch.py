"""Apply previewed renames to disk.

Changes are applied one by one in the order the preview produced them.
A rename never overwrites an existing file. When a thumbnail sidecar exists
for the original name it is moved along (best-effort). Per-item failures are
collected in the returned `ApplyResult`; the batch always runs to the end.
"""
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from reelkit.rename.core import RenameChange
from reelkit.utils import LogLevel, file_util, logger
from reelkit.utils.events import DirectoryEvents

ApplyProgressCallback = Callable[[str, int], None]


class RenameCollisionError(FileExistsError):
    def __init__(self, path: Path):
        super().__init__(f"Destination file already exists: {path.name}")
        self.path = path


@dataclass
class ApplyResult:
    succeeded: List[RenameChange] = field(default_factory=list)
    failed: List[Tuple[RenameChange, Exception]] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failure_count(self) -> int:
        return len(self.failed)


def _relocate_sidecar(change: RenameChange) -> None:
    """Move the thumbnail keyed by the old name to the new name; failures are ignored."""
    old_thumb = file_util.sidecar_path(change.original)
    new_thumb = file_util.sidecar_path(change.cleaned)
    if old_thumb == new_thumb or not old_thumb.exists():
        return
    if new_thumb.exists():
        logger.log("rename.sidecar_skipped", LogLevel.TRACE, file=old_thumb.name, reason="target exists")
        return
    try:
        old_thumb.rename(new_thumb)
    except OSError as e:
        logger.log("rename.sidecar_skipped", LogLevel.TRACE, file=old_thumb.name, error=str(e))


def apply_changes(
        changes: Sequence[RenameChange],
        on_progress: Optional[ApplyProgressCallback] = None,
        events: Optional[DirectoryEvents] = None,
) -> ApplyResult:
    """
    Rename every `original` to its `cleaned` path, in the given order.

    `on_progress(file_name, index)` is called before each item with its
    0-based index, and once more after the last item with
    `index == len(changes)`.

    Returns:
        ApplyResult listing the changes that succeeded and, for the others,
        the error that stopped them (RenameCollisionError or OSError).
    """
    result = ApplyResult()
    touched_dirs: List[Path] = []

    for index, change in enumerate(changes):
        if on_progress:
            on_progress(change.original.name, index)

        if change.cleaned.exists():
            err = RenameCollisionError(change.cleaned)
            logger.log("rename.collision", LogLevel.WARN, file=change.original.name, dst=change.cleaned.name)
            result.failed.append((change, err))
            continue

        try:
            shutil.move(str(change.original), str(change.cleaned))
        except (OSError, shutil.Error) as e:
            logger.log("rename.failed", LogLevel.ERROR, file=change.original.name, error=str(e))
            result.failed.append((change, e))
            continue

        _relocate_sidecar(change)
        result.succeeded.append(change)
        logger.log("rename.done", LogLevel.DEBUG, file=change.original.name, dst=change.cleaned.name)

        if change.original.parent not in touched_dirs:
            touched_dirs.append(change.original.parent)

    if changes and on_progress:
        on_progress(changes[-1].original.name, len(changes))

    logger.log("rename.complete", LogLevel.INFO, succeeded=result.success_count, failed=result.failure_count)

    # Listings need a re-scan; content-keyed caches stay valid
    if events is not None:
        for directory in touched_dirs:
            events.notify_changed(directory)
    return result
