"""
Utility functions for running external tools and locating their binaries.

Functions:
    - run_cmd: Executes a command and returns its exit code, stdout and stderr.
    - find_binary: Resolves ffmpeg/ffprobe from an explicit override, PATH, or
      the usual Homebrew prefixes.
    - which_or_die: Like find_binary, but terminates the process when the
      binary is unavailable.
"""
import os
import shutil
import subprocess
import sys
from typing import List, Optional, Tuple

from reelkit.utils import constants
from reelkit.utils.logger import safe_print


def run_cmd(cmd: List[str]) -> Tuple[int, str, str]:
    """Run a command and return (code, stdout, stderr)."""
    p = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
    return p.returncode, p.stdout, p.stderr


def find_binary(name: str, override: Optional[str] = None) -> Optional[str]:
    """Return a usable path for `name`, or None if it cannot be found."""
    if override:
        return shutil.which(override) or (override if os.access(override, os.X_OK) else None)

    found = shutil.which(name)
    if found:
        return found

    for directory in constants.HOMEBREW_BIN_DIRS:
        candidate = os.path.join(directory, name)
        if os.path.isfile(candidate) and os.access(candidate, os.X_OK):
            return candidate
    return None


def which_or_die(binary: str, override: Optional[str] = None) -> str:
    """Resolve a binary, exit with status 2 if not found."""
    path = find_binary(binary, override)
    if path is None:
        safe_print(f"ERROR: '{binary}' not found. Install it first (e.g. brew install ffmpeg).",
                   file=sys.stderr)
        sys.exit(2)
    return path
