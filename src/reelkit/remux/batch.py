"""
Batch remuxing of every compatible container in a directory.

Files are processed strictly one at a time, in directory enumeration order:
inspect, then remux if eligible. Every file produces exactly one outcome;
per-file errors are recorded and never stop the batch. Only a batch-level
cancellation stops early, and it is honoured between files, never in the
middle of one.
"""
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, NamedTuple, Optional, Union

from reelkit.remux.core import RemuxEngine, RemuxError
from reelkit.remux.probe import CodecInspector, Eligibility, MediaCandidate
from reelkit.utils import (
    SKIP_REASON_CODECS,
    SOURCE_EXTENSION,
    STATUS_FAIL,
    STATUS_OK,
    STATUS_SKIP,
    LogLevel,
    file_util,
    logger,
)
from reelkit.utils.events import DirectoryEvents


@dataclass(frozen=True)
class RemuxSuccess:
    original: Path
    output: Path
    status: str = field(default=STATUS_OK, init=False)


@dataclass(frozen=True)
class RemuxFailure:
    original: Path
    error: Exception
    status: str = field(default=STATUS_FAIL, init=False)


@dataclass(frozen=True)
class RemuxSkipped:
    original: Path
    reason: str
    status: str = field(default=STATUS_SKIP, init=False)


RemuxOutcome = Union[RemuxSuccess, RemuxFailure, RemuxSkipped]


class BatchProgress(NamedTuple):
    file_name: str
    fraction: float
    processed_count: int
    total_count: int


BatchProgressCallback = Callable[[BatchProgress], None]


def scan_candidates(directory: Path, source_ext: str = SOURCE_EXTENSION) -> List[MediaCandidate]:
    """List files with the source extension, in directory enumeration order."""
    return [MediaCandidate(p) for p in file_util.list_files(directory, [source_ext])]


def summarize(outcomes: List[RemuxOutcome]) -> Dict[str, int]:
    """Tally outcomes by status tag."""
    counts = {STATUS_OK: 0, STATUS_FAIL: 0, STATUS_SKIP: 0}
    for outcome in outcomes:
        counts[outcome.status] += 1
    return counts


class RemuxBatch:
    """Drives the inspector and the engine over a directory, one file at a time."""

    def __init__(
            self,
            inspector: Optional[CodecInspector] = None,
            engine: Optional[RemuxEngine] = None,
            events: Optional[DirectoryEvents] = None,
    ):
        self.inspector = inspector or CodecInspector()
        self.engine = engine or RemuxEngine()
        self.events = events

    def run(
            self,
            directory: Path,
            on_progress: Optional[BatchProgressCallback] = None,
            cancel_event: Optional[threading.Event] = None,
    ) -> List[RemuxOutcome]:
        """
        Remux every compatible file in `directory`.

        Returns one outcome per processed file, in processing order. When
        `cancel_event` is set the batch stops before the next file and
        returns what it has so far.

        Progress snapshots are emitted with `fraction=0` when a file starts
        and then with the engine's fraction while it runs; `processed_count`
        counts the current file, so the last snapshot of a complete run has
        `processed_count == total_count`.
        """
        directory = Path(directory)
        outcomes: List[RemuxOutcome] = []

        try:
            candidates = scan_candidates(directory, self.inspector.source_ext)
        except OSError as e:
            logger.log("batch.scan_failed", LogLevel.ERROR, directory=str(directory), error=str(e))
            return outcomes

        total = len(candidates)
        logger.log("batch.start", LogLevel.INFO, directory=str(directory), files_found=total)

        def _emit(name: str, fraction: float, processed: int) -> None:
            if on_progress:
                on_progress(BatchProgress(name, fraction, processed, total))

        for processed, candidate in enumerate(candidates, start=1):
            if cancel_event is not None and cancel_event.is_set():
                logger.log("batch.cancelled", LogLevel.WARN, processed=processed - 1, total=total)
                break

            src = candidate.path
            _emit(src.name, 0.0, processed)

            self.inspector.classify(candidate)
            if candidate.eligibility is not Eligibility.ELIGIBLE:
                outcomes.append(RemuxSkipped(src, SKIP_REASON_CODECS))
                logger.log("batch.skip", LogLevel.INFO, file=src.name, reason=SKIP_REASON_CODECS)
                continue

            try:
                output = self.engine.remux(src, lambda f, _n=src.name, _p=processed: _emit(_n, f, _p))
            except (RemuxError, OSError) as e:
                outcomes.append(RemuxFailure(src, e))
                logger.log("batch.fail", LogLevel.WARN, file=src.name, error=str(e))
                continue

            outcomes.append(RemuxSuccess(src, output))

        counts = summarize(outcomes)
        logger.log(
            "batch.complete",
            LogLevel.INFO,
            directory=str(directory),
            ok=counts[STATUS_OK],
            skip=counts[STATUS_SKIP],
            fail=counts[STATUS_FAIL],
        )
        if self.events is not None:
            self.events.notify_changed(directory)
        return outcomes
