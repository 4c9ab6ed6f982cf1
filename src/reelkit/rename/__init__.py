"""
Filename cleanup for video directories.

Package organization:
- rules: cleanup rules (literal, wildcard, regex) and `FilenameCleaner`,
  which applies them idempotently to base names.
- store: SQLite-backed, ordered rule storage.
- core: `preview_changes`, the side-effect-free preview of proposed renames.
- batch: `apply_changes`, which performs the renames and moves thumbnail
  sidecars along with them.

Example:
    from pathlib import Path
    import reelkit.rename as rename

    cleaner = rename.FilenameCleaner()
    preview = rename.preview_changes(Path("Movies").iterdir(), cleaner, limit=20)
    result = rename.apply_changes(preview.changes)
"""
from .rules import (
    DEFAULT_RULES,
    CleanupRule,
    FilenameCleaner,
    wildcard_to_regex,
)
from .store import RuleStore
from .core import (
    DEFAULT_PREVIEW_LIMIT,
    PreviewResult,
    RenameChange,
    preview_changes,
)
from .batch import (
    ApplyResult,
    RenameCollisionError,
    apply_changes,
)

__all__ = [
    # Rules
    "CleanupRule",
    "DEFAULT_RULES",
    "FilenameCleaner",
    "wildcard_to_regex",
    "RuleStore",
    # Preview
    "DEFAULT_PREVIEW_LIMIT",
    "PreviewResult",
    "RenameChange",
    "preview_changes",
    # Apply
    "ApplyResult",
    "RenameCollisionError",
    "apply_changes",
]
