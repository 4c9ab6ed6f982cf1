"""
Filename cleanup rules.

A rule is a search/replace pair applied to a file's base name. Searches are
case-insensitive and come in three flavours:

- literal text ("www.site.com - " -> "")
- wildcards, where `*` matches any run of characters and `?` a single one
  ("(*)" -> "" removes a parenthesised tag)
- raw regular expressions, used by the built-in default rule set

Replacement text is always inserted literally.

`FilenameCleaner` applies an ordered rule list, then tidies whitespace and
strips characters that are invalid in file names. It repeats until the name
stops changing, so cleaning a cleaned name is a no-op.
"""
import os
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Pattern, Tuple

from reelkit.utils import LogLevel, file_util, logger

# Upper bound on rule passes before a name is considered stable
MAX_PASSES = 8


def wildcard_to_regex(pattern: str) -> str:
    """Translate a `*`/`?` wildcard pattern into an (unanchored) regex."""
    parts = []
    for char in pattern:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return "".join(parts)


@dataclass
class CleanupRule:
    search_text: str
    replace_text: str = ""
    is_enabled: bool = True
    is_regex: bool = False
    rule_id: Optional[int] = None

    def __post_init__(self):
        if not self.search_text:
            raise ValueError("cleanup rule needs a non-empty search text")

    @property
    def is_wildcard(self) -> bool:
        return not self.is_regex and ("*" in self.search_text or "?" in self.search_text)

    @property
    def display_search_text(self) -> str:
        """Search text with spaces made visible."""
        return self.search_text.replace(" ", "␣")

    @property
    def display_replace_text(self) -> str:
        return self.replace_text.replace(" ", "␣")

    def compile(self) -> Pattern:
        if self.is_regex:
            pattern = self.search_text
        elif self.is_wildcard:
            pattern = wildcard_to_regex(self.search_text)
        else:
            pattern = re.escape(self.search_text)

        try:
            return re.compile(pattern, re.IGNORECASE)
        except re.error as e:
            # Fall back to a literal, case-insensitive match on the raw text
            logger.log("rules.bad_pattern", LogLevel.WARN, search=self.search_text, error=str(e))
            return re.compile(re.escape(self.search_text), re.IGNORECASE)


_RELEASE_TOKENS = (
    r"(?:19|20)\d{2}"
    r"|\d{3,4}[pi]|[48]k|uhd"
    r"|[xh]\.?26[45]|hevc|xvid|divx"
    r"|web[ .-]?dl|webrip|blu[ .-]?ray|bdrip|brrip|bdremux|hdtv|dvdrip|hdrip|remux"
    r"|hdr(?:10)?\+?|10bit"
    r"|aac(?:[ .]?[257][ .]?[01])?|e?ac3|ddp?[ .]?[257][ .]?[01]|dts(?:-?hd)?|truehd|atmos"
)

DEFAULT_RULES: Tuple[CleanupRule, ...] = (
    # Drop everything from the first release tag (year, resolution, codec, ...) onwards
    CleanupRule(
        rf"[\s._\-\[(]+(?:{_RELEASE_TOKENS})(?=$|[\s._\-\])]).*$",
        "",
        is_regex=True,
    ),
    # Bracketed group tags
    CleanupRule(r"\[[^\]]*\]", "", is_regex=True),
    # Dot and underscore separators
    CleanupRule(r"[._]+", " ", is_regex=True),
    # Dangling dashes
    CleanupRule(r"^[\s\-]+|[\s\-]+$", "", is_regex=True),
)


def _tidy(stem: str) -> str:
    return file_util.collapse_whitespace(file_util.sanitize_filename(stem))


class FilenameCleaner:
    """Applies an ordered set of cleanup rules to file names."""

    def __init__(self, rules: Optional[Iterable[CleanupRule]] = None):
        self.rules: List[CleanupRule] = list(DEFAULT_RULES if rules is None else rules)
        self._compiled = [
            (rule.compile(), rule.replace_text)
            for rule in self.rules if rule.is_enabled
        ]

    def _apply_once(self, stem: str) -> str:
        for pattern, replacement in self._compiled:
            stem = pattern.sub(lambda _m, r=replacement: r, stem)
        return _tidy(stem)

    def clean_stem(self, stem: str) -> str:
        """
        Clean a base name (no extension).

        Rules run in order, followed by whitespace tidying, until the result
        is stable. A name that would be cleaned down to nothing (or only dots)
        is returned unchanged.
        """
        current = stem
        for _ in range(MAX_PASSES):
            cleaned = self._apply_once(current)
            if cleaned == current:
                break
            current = cleaned
        else:
            logger.log("rules.unstable", LogLevel.WARN, stem=stem, result=current, passes=MAX_PASSES)

        if not current.strip("."):
            logger.log("rules.empty_result", LogLevel.DEBUG, stem=stem)
            return stem
        return current

    def clean_filename(self, name: str) -> str:
        """Clean a file name, leaving its extension untouched."""
        stem, ext = os.path.splitext(name)
        return self.clean_stem(stem) + ext
