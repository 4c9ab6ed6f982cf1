"""
Stream-copy remuxing of a single container into MP4.

An `ExportSession` wraps one ffmpeg process and exposes its state through
plain fields (`status`, `progress`, `error`) that are updated by background
reader threads. `RemuxEngine` drives a session: it samples those fields on a
fixed interval, forwards progress to the caller, and once the session
reaches a terminal state either archives the original as `<name>.bak` or
cleans up the partial output and raises.
"""
import re
import subprocess
import threading
import time
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from reelkit.remux.probe import probe_duration
from reelkit.utils import POLL_INTERVAL, TARGET_EXTENSION, LogLevel, file_util, logger

ProgressCallback = Callable[[float], None]


class ExportStatus(Enum):
    WAITING = "waiting"
    EXPORTING = "exporting"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_STATES = frozenset({ExportStatus.COMPLETED, ExportStatus.FAILED, ExportStatus.CANCELLED})
ACTIVE_STATES = frozenset({ExportStatus.WAITING, ExportStatus.EXPORTING})


class RemuxError(Exception):
    """Base class for everything that can go wrong while remuxing one file."""


class DestinationExistsError(RemuxError):
    def __init__(self, path: Path):
        super().__init__(f"Destination already exists: {path}")
        self.path = path


class ExportFailedError(RemuxError):
    def __init__(self, underlying: Optional[BaseException]):
        super().__init__(f"Export failed: {underlying}" if underlying else "Export failed")
        self.underlying = underlying


class RemuxCancelledError(RemuxError):
    def __init__(self):
        super().__init__("Export was cancelled")


class UnknownRemuxError(RemuxError):
    def __init__(self, status=None):
        super().__init__(f"Unknown error occurred (status: {getattr(status, 'value', status)})")
        self.status = status


class BackupError(RemuxError):
    def __init__(self, path: Path, reason: str):
        super().__init__(f"Could not archive original to {path}: {reason}")
        self.path = path


class FFmpegError(RuntimeError):
    """Raised (as a session error) when ffmpeg exits non-zero."""

    def __init__(self, returncode: int, stderr: str):
        tail = stderr.strip().splitlines()[-1] if stderr.strip() else "no output"
        super().__init__(f"ffmpeg exited with code {returncode}: {tail}")
        self.returncode = returncode
        self.stderr = stderr


_PROGRESS_KV = re.compile(r"^\s*([a-z_]+)\s*=\s*(.*?)\s*$")
_CLOCK = re.compile(r"^(\d+):(\d+):(\d+(?:\.\d+)?)$")


def parse_out_time(key: str, value: str) -> Optional[float]:
    """
    Convert one ffmpeg `-progress` time field into seconds.

    ffmpeg reports both `out_time_us` and `out_time_ms` in microseconds
    (despite the name) and `out_time` as HH:MM:SS.ffffff. Returns None for
    other keys and for placeholder values such as "N/A".
    """
    try:
        if key in ("out_time_us", "out_time_ms"):
            return int(value) / 1_000_000
        if key == "out_time":
            m = _CLOCK.match(value)
            if m:
                return int(m.group(1)) * 3600 + int(m.group(2)) * 60 + float(m.group(3))
    except ValueError:
        pass
    return None


class ExportSession:
    """One ffmpeg stream-copy run whose state can be polled."""

    def __init__(self, src: Path, dst: Path, duration: Optional[float] = None, ffmpeg: str = "ffmpeg"):
        self.src = Path(src)
        self.dst = Path(dst)
        self.duration = duration
        self.ffmpeg = ffmpeg
        self.status = ExportStatus.WAITING
        self.progress = 0.0
        self.error: Optional[BaseException] = None
        self._process: Optional[subprocess.Popen] = None
        self._cancelled = False
        self._lock = threading.Lock()
        self._stderr: List[str] = []
        self._watcher: Optional[threading.Thread] = None
        self._stderr_reader: Optional[threading.Thread] = None

    def build_cmd(self) -> List[str]:
        # Subtitles are left out: bitmap subtitle codecs cannot be stored in MP4
        return [
            self.ffmpeg,
            "-hide_banner",
            "-nostdin",
            "-loglevel", "error",
            "-y",
            "-i", str(self.src),
            "-map", "0:v:0",
            "-map", "0:a?",
            "-c", "copy",
            "-movflags", "+faststart",
            "-progress", "pipe:1",
            "-nostats",
            str(self.dst),
        ]

    def start(self) -> None:
        """Launch ffmpeg. Never raises: a launch failure moves the session to FAILED."""
        with self._lock:
            if self.status is not ExportStatus.WAITING:
                return
            try:
                self._process = subprocess.Popen(
                    self.build_cmd(),
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.PIPE,
                    text=True,
                    errors="replace",
                    bufsize=1,
                )
            except OSError as e:
                self.error = e
                self.status = ExportStatus.FAILED
                return
            self.status = ExportStatus.EXPORTING

        self._stderr_reader = threading.Thread(target=self._read_stderr, daemon=True)
        self._watcher = threading.Thread(target=self._watch, daemon=True)
        self._stderr_reader.start()
        self._watcher.start()

    def cancel(self, timeout: float = 5.0) -> None:
        """Stop the export. The session ends in CANCELLED; the output is left for the caller."""
        with self._lock:
            if self.status in TERMINAL_STATES:
                return
            self._cancelled = True
            if self._process is None:
                self.status = ExportStatus.CANCELLED
                return
            self._process.terminate()

        if self._watcher is not None:
            self._watcher.join(timeout)
            if self._watcher.is_alive():
                self._process.kill()
                self._watcher.join()

    def _read_stderr(self) -> None:
        for line in self._process.stderr:
            self._stderr.append(line)

    def _watch(self) -> None:
        try:
            self._read_progress()
        except Exception as e:
            self.error = e
            self._process.kill()

        code = self._process.wait()
        self._stderr_reader.join()

        with self._lock:
            if self._cancelled:
                self.status = ExportStatus.CANCELLED
            elif self.error is not None:
                self.status = ExportStatus.FAILED
            elif code == 0:
                self.progress = 1.0
                self.status = ExportStatus.COMPLETED
            else:
                self.error = FFmpegError(code, "".join(self._stderr))
                self.status = ExportStatus.FAILED

    def _read_progress(self) -> None:
        for line in self._process.stdout:
            m = _PROGRESS_KV.match(line)
            if not m:
                continue
            key, value = m.group(1), m.group(2)
            if key == "progress" and value == "end":
                self.progress = 1.0
                continue
            seconds = parse_out_time(key, value)
            if seconds is not None and self.duration:
                fraction = min(1.0, max(0.0, seconds / self.duration))
                # progress only moves forward
                self.progress = max(self.progress, fraction)


class RemuxEngine:
    """Repacks one file into the target container, archiving the original on success."""

    def __init__(
            self,
            target_ext: str = TARGET_EXTENSION,
            poll_interval: float = POLL_INTERVAL,
            overwrite: bool = True,
            ffmpeg: str = "ffmpeg",
            ffprobe: str = "ffprobe",
            session_factory=ExportSession,
    ):
        self.target_ext = target_ext.lower()
        self.poll_interval = poll_interval
        self.overwrite = overwrite
        self.ffmpeg = ffmpeg
        self.ffprobe = ffprobe
        self.session_factory = session_factory

    def output_path_for(self, path: Path) -> Path:
        """Same directory, same base name, target extension."""
        return Path(path).with_suffix(self.target_ext)

    @staticmethod
    def backup_path_for(path: Path) -> Path:
        return file_util.backup_path(Path(path))

    def remux(
            self,
            path: Path,
            on_progress: Optional[ProgressCallback] = None,
            cancel_event: Optional[threading.Event] = None,
    ) -> Path:
        """
        Stream-copy `path` into the target container and return the new path.

        A file already sitting at the output path is removed first (retries
        overwrite their own earlier output) unless the engine was built with
        `overwrite=False`, in which case DestinationExistsError is raised.

        Progress fractions (0.0-1.0, non-decreasing) are passed to
        `on_progress` every `poll_interval` seconds until the export reaches
        a terminal state. Setting `cancel_event` stops the export.

        On success the original is renamed to `<name>.bak`. On failure or
        cancellation the partial output is deleted, the original is left
        untouched and a RemuxError subclass is raised.
        """
        path = Path(path)
        output = self.output_path_for(path)

        if output.exists():
            if not self.overwrite:
                raise DestinationExistsError(output)
            logger.log("remux.overwrite", LogLevel.DEBUG, file=output.name)
            output.unlink()

        duration = probe_duration(path, self.ffprobe)
        session = self.session_factory(path, output, duration=duration, ffmpeg=self.ffmpeg)

        logger.log("remux.start", LogLevel.INFO, file=path.name, dst=output.name, duration=duration)
        session.start()

        last = 0.0
        while True:
            if cancel_event is not None and cancel_event.is_set() and session.status in ACTIVE_STATES:
                logger.log("remux.cancel", LogLevel.INFO, file=path.name)
                session.cancel()

            last = max(last, min(1.0, session.progress))
            if on_progress:
                on_progress(last)

            if session.status not in ACTIVE_STATES:
                break
            time.sleep(self.poll_interval)

        status = session.status
        if status is ExportStatus.COMPLETED:
            try:
                self._archive_original(path)
            except BackupError as e:
                logger.log("remux.backup_failed", LogLevel.ERROR, file=path.name, error=str(e))
                raise
            logger.log("remux.complete", LogLevel.INFO, file=path.name, dst=output.name)
            return output

        self._discard_partial(output)
        if status is ExportStatus.FAILED:
            logger.log("remux.failed", LogLevel.ERROR, file=path.name, error=str(session.error))
            raise ExportFailedError(session.error)
        if status is ExportStatus.CANCELLED:
            raise RemuxCancelledError()
        raise UnknownRemuxError(status)

    def _archive_original(self, path: Path) -> Path:
        backup = self.backup_path_for(path)
        if backup.exists():
            raise BackupError(backup, "backup already exists")
        try:
            path.rename(backup)
        except OSError as e:
            raise BackupError(backup, str(e)) from e
        return backup

    @staticmethod
    def _discard_partial(output: Path) -> None:
        try:
            output.unlink(missing_ok=True)
        except OSError as e:
            logger.log("remux.cleanup_failed", LogLevel.WARN, file=output.name, error=str(e))
