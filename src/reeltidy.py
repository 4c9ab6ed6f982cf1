#!/usr/bin/env python3
"""
reeltidy: tidy up a folder of videos.

Subcommands:
- remux: repack every MKV whose codecs MP4 can carry into an MP4 next to it
  (stream copy, no re-encoding); originals are kept as `<name>.mkv.bak`.
- clean: preview, and with --apply perform, file name cleanup using the
  stored cleanup rules (or the built-in defaults).
- rules: manage the stored cleanup rules.
"""

import argparse
import signal
import sys
import threading
from pathlib import Path

from tqdm import tqdm

import reelkit
from reelkit import remux, rename
from reelkit.utils import (
    LOG_LEVEL,
    PREVIEW_LIMIT,
    STATUS_FAIL,
    STATUS_OK,
    STATUS_SKIP,
    VIDEO_EXTENSIONS,
    LogLevel,
    constants,
    file_util,
    logger,
    system_util,
)
from reelkit.utils.events import DirectoryEvents

# Set by SIGINT/SIGTERM; the remux batch stops before its next file
_shutdown_requested = threading.Event()


def _signal_handler(signum, frame):
    """Handle termination signals gracefully."""
    if _shutdown_requested.is_set():
        logger.safe_print("\nSecond signal received. Exiting now.")
        sys.exit(130)
    _shutdown_requested.set()
    logger.safe_print("\nShutdown signal received. Finishing the current file...")


def _resolve_directory(raw: str) -> Path | None:
    directory = Path(raw).expanduser().resolve()
    if not directory.is_dir():
        logger.log("startup.error", LogLevel.ERROR, msg="Directory does not exist", path=str(directory))
        return None
    return directory


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {number}")
    return number


def _refresh_listener(directory: Path) -> None:
    logger.log("reeltidy.refresh", LogLevel.DEBUG, directory=str(directory))


def cmd_remux(args) -> int:
    ffmpeg = system_util.which_or_die("ffmpeg", constants.FFMPEG_BINARY)
    ffprobe = system_util.which_or_die("ffprobe", constants.FFPROBE_BINARY)

    directory = _resolve_directory(args.directory)
    if directory is None:
        return 2

    events = DirectoryEvents()
    events.subscribe(_refresh_listener)
    batch = remux.RemuxBatch(
        inspector=remux.CodecInspector(ffprobe=ffprobe),
        engine=remux.RemuxEngine(overwrite=not args.no_overwrite, ffmpeg=ffmpeg, ffprobe=ffprobe),
        events=events,
    )

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    bar = tqdm(desc="Remuxing", unit="file")

    def _on_progress(p: remux.BatchProgress) -> None:
        bar.total = p.total_count
        bar.n = p.processed_count if p.fraction >= 1.0 else p.processed_count - 1
        bar.set_postfix_str(f"{p.file_name} {p.fraction:.0%}", refresh=False)
        bar.refresh()

    try:
        outcomes = batch.run(directory, on_progress=_on_progress, cancel_event=_shutdown_requested)
        # skipped files never report a full fraction
        bar.n = len(outcomes)
    finally:
        bar.close()

    if not outcomes:
        logger.safe_print(f"No {constants.SOURCE_EXTENSION} files processed in {directory}")
        return 0

    for outcome in outcomes:
        if isinstance(outcome, remux.RemuxSuccess):
            logger.safe_print(f"[{outcome.status}] {outcome.original.name} -> {outcome.output.name}")
        elif isinstance(outcome, remux.RemuxSkipped):
            logger.safe_print(f"[{outcome.status}] {outcome.original.name} ({outcome.reason})")
        else:
            logger.safe_print(f"[{outcome.status}] {outcome.original.name}: {outcome.error}")

    counts = remux.summarize(outcomes)
    logger.safe_print(f"\n🎉 Done. OK={counts[STATUS_OK]} SKIP={counts[STATUS_SKIP]} FAIL={counts[STATUS_FAIL]}")
    if counts[STATUS_OK]:
        logger.safe_print(f"Originals saved with {constants.BACKUP_SUFFIX} extension")
    return 1 if counts[STATUS_FAIL] else 0


def cmd_clean(args) -> int:
    directory = _resolve_directory(args.directory)
    if directory is None:
        return 2

    cleaner = rename.RuleStore(args.rules_db).load_cleaner()
    files = file_util.list_files(directory, VIDEO_EXTENSIONS)
    limit = None if args.all else args.limit
    preview = rename.preview_changes(files, cleaner, limit=limit)

    if not preview.changes:
        logger.safe_print("⚠️ No files need renaming.")
        return 0

    logger.safe_print("\n📋 Proposed renames:")
    for change in preview.changes:
        logger.safe_print(f"{change.original.name} → {change.cleaned.name}")
    logger.safe_print(f"\nShowing {len(preview.changes)} of {preview.total_matches} files that would change")

    if not args.apply:
        logger.safe_print("\n🧪 Preview only: re-run with --apply to rename the files listed above.")
        return 0

    events = DirectoryEvents()
    events.subscribe(_refresh_listener)

    with tqdm(total=len(preview.changes), desc="Renaming files", unit="file") as bar:
        def _on_progress(name: str, index: int) -> None:
            bar.n = index
            bar.set_postfix_str(name, refresh=False)
            bar.refresh()

        result = rename.apply_changes(preview.changes, on_progress=_on_progress, events=events)

    for change, error in result.failed:
        logger.safe_print(f"❌ Failed to rename {change.original.name}: {error}")

    logger.safe_print(f"\n🎉 Finished renaming files. OK={result.success_count} FAIL={result.failure_count}")
    return 1 if result.failure_count else 0


def cmd_rules(args) -> int:
    store = rename.RuleStore(args.rules_db)
    action = args.action

    if action == "list":
        rules = store.list_rules()
        if not rules:
            logger.safe_print("No stored rules; the built-in defaults are used:")
            rules = list(rename.DEFAULT_RULES)
        for position, rule in enumerate(rules):
            state = "on " if rule.is_enabled else "off"
            kind = "regex" if rule.is_regex else ("wildcard" if rule.is_wildcard else "text")
            ident = rule.rule_id if rule.rule_id is not None else "-"
            logger.safe_print(
                f"{position:>3} [{state}] id={ident} {kind:<8} "
                f"[{rule.display_search_text}] -> [{rule.display_replace_text}]"
            )
        return 0

    if action == "add":
        try:
            rule = store.add_rule(args.search, args.replace, is_regex=args.regex)
        except ValueError as e:
            logger.safe_print(f"ERROR: {e}", file=sys.stderr)
            return 2
        logger.safe_print(f"Added rule {rule.rule_id}")
        return 0

    if action == "update":
        ok = store.update_rule(args.id, args.search, args.replace)
    elif action in ("enable", "disable"):
        ok = store.toggle_rule(args.id, action == "enable")
    elif action == "delete":
        ok = store.delete_rule(args.id)
    else:
        ok = store.move_rule(args.source, args.destination)

    if not ok:
        logger.safe_print(f"ERROR: '{action}' had no effect (check the rule id or positions)", file=sys.stderr)
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Remux compatible MKV files to MP4 and clean up video file names.",
        epilog="Example: reeltidy clean ~/Movies --all --apply",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug output")
    parser.add_argument("--version", action="version", version=f"%(prog)s {reelkit.__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    p_remux = sub.add_parser("remux", help="Repack compatible MKV files into MP4 (stream copy)")
    p_remux.add_argument("directory", help="Folder containing the MKV files (not searched recursively)")
    p_remux.add_argument("--no-overwrite", action="store_true",
                         help="Fail instead of replacing an existing MP4 with the same name")
    p_remux.set_defaults(func=cmd_remux)

    rules_db_help = "Cleanup rules database (default: $REELKIT_DATA_DIR/cleanup_rules.db)"

    p_clean = sub.add_parser("clean", help="Preview or apply file name cleanup")
    p_clean.add_argument("directory", help="Folder containing the videos")
    p_clean.add_argument("--limit", type=_non_negative_int, default=PREVIEW_LIMIT,
                         help=f"Number of renames to show and apply (default: {PREVIEW_LIMIT})")
    p_clean.add_argument("--all", action="store_true", help="Show and apply every rename (no limit)")
    p_clean.add_argument("--apply", action="store_true", help="Rename the files listed in the preview")
    p_clean.add_argument("--rules-db", type=Path, help=rules_db_help)
    p_clean.set_defaults(func=cmd_clean)

    p_rules = sub.add_parser("rules", help="Manage stored cleanup rules")
    p_rules.add_argument("--rules-db", type=Path, help=rules_db_help)
    actions = p_rules.add_subparsers(dest="action", required=True)
    actions.add_parser("list", help="Show rules in application order")
    p_add = actions.add_parser("add", help="Append a rule (use * and ? as wildcards)")
    p_add.add_argument("search")
    p_add.add_argument("replace", nargs="?", default="")
    p_add.add_argument("--regex", action="store_true", help="Treat SEARCH as a regular expression")
    p_update = actions.add_parser("update", help="Change a rule's search and replace text")
    p_update.add_argument("id", type=int)
    p_update.add_argument("search")
    p_update.add_argument("replace", nargs="?", default="")
    for name in ("enable", "disable", "delete"):
        actions.add_parser(name, help=f"{name.capitalize()} a rule").add_argument("id", type=int)
    p_move = actions.add_parser("move", help="Move a rule from one position to another")
    p_move.add_argument("source", type=int)
    p_move.add_argument("destination", type=int)
    p_rules.set_defaults(func=cmd_rules)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    if args.debug:
        logger.set_log_level(LogLevel.DEBUG)
    else:
        logger.set_log_level(LogLevel.from_name(LOG_LEVEL))

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
