"""Lossless MKV → MP4 remuxing.

This package provides three levels of functionality:
- probe: ffprobe-based codec inspection and the remux eligibility verdict
- core: the stream-copy engine (ffmpeg export session, progress, backups)
- batch: directory-level orchestration with progress and per-file outcomes
"""

from .probe import (
    AudioCodec,
    CodecInspector,
    CodecProfile,
    Eligibility,
    MediaCandidate,
    VideoCodec,
    probe_codec_profile,
    probe_duration,
)
from .core import (
    BackupError,
    DestinationExistsError,
    ExportFailedError,
    ExportSession,
    ExportStatus,
    FFmpegError,
    RemuxCancelledError,
    RemuxEngine,
    RemuxError,
    UnknownRemuxError,
)
from .batch import (
    BatchProgress,
    RemuxBatch,
    RemuxFailure,
    RemuxOutcome,
    RemuxSkipped,
    RemuxSuccess,
    scan_candidates,
    summarize,
)

__all__ = [
    # Inspection
    "AudioCodec",
    "VideoCodec",
    "CodecProfile",
    "CodecInspector",
    "Eligibility",
    "MediaCandidate",
    "probe_codec_profile",
    "probe_duration",
    # Engine
    "ExportSession",
    "ExportStatus",
    "RemuxEngine",
    "RemuxError",
    "DestinationExistsError",
    "ExportFailedError",
    "RemuxCancelledError",
    "UnknownRemuxError",
    "BackupError",
    "FFmpegError",
    # Batch
    "BatchProgress",
    "RemuxBatch",
    "RemuxOutcome",
    "RemuxSuccess",
    "RemuxFailure",
    "RemuxSkipped",
    "scan_candidates",
    "summarize",
]
