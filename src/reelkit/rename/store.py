"""SQLite persistence for user-defined cleanup rules.

Rules are kept in a small database (by default `~/.reelkit/cleanup_rules.db`)
so they survive between runs and can be shared by pointing
`REELKIT_DATA_DIR` at a network drive. Order is explicit (`sort_order`) and
is the order in which the cleaner applies the rules.
"""
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

from reelkit.rename.rules import CleanupRule, FilenameCleaner
from reelkit.utils import DATA_DIR, RULES_DB_NAME, LogLevel, logger

_SCHEMA = """
    CREATE TABLE IF NOT EXISTS cleanup_rules (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        search_text TEXT NOT NULL,
        replace_text TEXT NOT NULL,
        is_enabled INTEGER DEFAULT 1,
        sort_order INTEGER DEFAULT 0,
        is_regex INTEGER DEFAULT 0
    )
"""


def default_db_path() -> Path:
    return DATA_DIR / RULES_DB_NAME


class RuleStore:
    """Ordered, persistent list of cleanup rules."""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path) if db_path else default_db_path()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Connection that commits on success and is always closed."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute(_SCHEMA)
        logger.log("rules.db_open", LogLevel.DEBUG, path=str(self.db_path))

    def list_rules(self) -> List[CleanupRule]:
        """All rules (enabled or not) in application order."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT id, search_text, replace_text, is_enabled, is_regex "
                "FROM cleanup_rules ORDER BY sort_order, id"
            ).fetchall()
        return [
            CleanupRule(
                search_text=row["search_text"],
                replace_text=row["replace_text"],
                is_enabled=bool(row["is_enabled"]),
                is_regex=bool(row["is_regex"]),
                rule_id=row["id"],
            )
            for row in rows
        ]

    def add_rule(self, search_text: str, replace_text: str = "", is_regex: bool = False) -> CleanupRule:
        """Append a rule at the end of the order and return it."""
        rule = CleanupRule(search_text, replace_text, is_regex=is_regex)
        with self._connect() as conn:
            (max_order,) = conn.execute("SELECT COALESCE(MAX(sort_order), -1) FROM cleanup_rules").fetchone()
            cur = conn.execute(
                "INSERT INTO cleanup_rules (search_text, replace_text, sort_order, is_regex) VALUES (?, ?, ?, ?)",
                (search_text, replace_text, max_order + 1, int(is_regex)),
            )
            rule.rule_id = cur.lastrowid
        logger.log("rules.add", LogLevel.INFO, id=rule.rule_id, search=search_text, replace=replace_text)
        return rule

    def update_rule(self, rule_id: int, search_text: str, replace_text: str) -> bool:
        if not search_text:
            raise ValueError("cleanup rule needs a non-empty search text")
        with self._connect() as conn:
            cur = conn.execute(
                "UPDATE cleanup_rules SET search_text = ?, replace_text = ? WHERE id = ?",
                (search_text, replace_text, rule_id),
            )
        return cur.rowcount > 0

    def toggle_rule(self, rule_id: int, is_enabled: bool) -> bool:
        with self._connect() as conn:
            cur = conn.execute(
                "UPDATE cleanup_rules SET is_enabled = ? WHERE id = ?",
                (int(is_enabled), rule_id),
            )
        return cur.rowcount > 0

    def delete_rule(self, rule_id: int) -> bool:
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM cleanup_rules WHERE id = ?", (rule_id,))
        return cur.rowcount > 0

    def move_rule(self, source_index: int, destination_index: int) -> bool:
        """Move the rule at `source_index` to `destination_index` (0-based positions)."""
        rules = self.list_rules()
        if (source_index == destination_index
                or not 0 <= source_index < len(rules)
                or not 0 <= destination_index < len(rules)):
            return False

        rules.insert(destination_index, rules.pop(source_index))
        with self._connect() as conn:
            conn.executemany(
                "UPDATE cleanup_rules SET sort_order = ? WHERE id = ?",
                [(index, rule.rule_id) for index, rule in enumerate(rules)],
            )
        return True

    def load_cleaner(self) -> FilenameCleaner:
        """Cleaner for the stored rules, or the built-in defaults when none are stored."""
        rules = self.list_rules()
        if not rules:
            logger.log("rules.defaults", LogLevel.DEBUG, reason="no stored rules")
            return FilenameCleaner()
        return FilenameCleaner(rules)
