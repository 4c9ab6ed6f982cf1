"""
Container inspection for the remux workflow.

Uses ffprobe to read the codec of every stream in a container and decides
whether the streams can be copied into an MP4 container unchanged. The
verdict fails closed: anything that cannot be read or recognised makes the
file ineligible.
"""
import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

from reelkit.utils import SOURCE_EXTENSION, LogLevel, logger, system_util


class VideoCodec(Enum):
    H264 = "h264"
    HEVC = "hevc"
    MPEG4 = "mpeg4"
    MPEG2 = "mpeg2video"
    VP8 = "vp8"
    VP9 = "vp9"
    AV1 = "av1"
    UNKNOWN = "unknown"

    @classmethod
    def from_name(cls, name: Optional[str]) -> "VideoCodec":
        try:
            return cls((name or "").lower())
        except ValueError:
            return cls.UNKNOWN


class AudioCodec(Enum):
    AAC = "aac"
    MP3 = "mp3"
    MP2 = "mp2"
    MP1 = "mp1"
    PCM = "pcm"
    AC3 = "ac3"
    EAC3 = "eac3"
    DTS = "dts"
    TRUEHD = "truehd"
    FLAC = "flac"
    OPUS = "opus"
    VORBIS = "vorbis"
    UNKNOWN = "unknown"

    @classmethod
    def from_name(cls, name: Optional[str]) -> "AudioCodec":
        name = (name or "").lower()
        # ffprobe reports PCM per sample layout (pcm_s16le, pcm_f32be, ...)
        if name.startswith("pcm_"):
            return cls.PCM
        try:
            return cls(name)
        except ValueError:
            return cls.UNKNOWN


# The two video codecs MP4 carries as-is, and the audio codecs that go along
SUPPORTED_VIDEO_CODECS = frozenset({VideoCodec.H264, VideoCodec.HEVC})
SUPPORTED_AUDIO_CODECS = frozenset({
    AudioCodec.AAC,
    AudioCodec.MP3,
    AudioCodec.MP2,
    AudioCodec.MP1,
    AudioCodec.PCM,
})


class Eligibility(Enum):
    ELIGIBLE = "eligible"
    INELIGIBLE = "ineligible"
    UNKNOWN = "unknown"


@dataclass
class MediaCandidate:
    """A file found by a directory scan, plus its cached classification."""
    path: Path
    eligibility: Eligibility = Eligibility.UNKNOWN


@dataclass(frozen=True)
class CodecProfile:
    video_codec: VideoCodec
    audio_codecs: Tuple[AudioCodec, ...] = ()

    @property
    def is_remuxable(self) -> bool:
        """True when the video codec and every audio codec are on the allow-lists."""
        if self.video_codec not in SUPPORTED_VIDEO_CODECS:
            return False
        return all(codec in SUPPORTED_AUDIO_CODECS for codec in self.audio_codecs)


def _ffprobe_json(path: Path, entries: str, ffprobe: str) -> dict:
    """Run ffprobe for `entries` and return the decoded JSON (raises on failure)."""
    cmd = [
        ffprobe, "-v", "error",
        "-show_entries", entries,
        "-of", "json",
        str(path),
    ]
    code, out, err = system_util.run_cmd(cmd)
    if code != 0:
        raise RuntimeError(f"ffprobe exited with code {code}: {err.strip()[:200]}")
    return json.loads(out or "{}")


def probe_codec_profile(path: Path, ffprobe: str = "ffprobe") -> Optional[CodecProfile]:
    """
    Read the codec profile of a container.

    Only the first video stream is considered; containers with several video
    streams are judged on that one alone. Returns None when the container
    has no video stream or its video stream carries no codec name.
    Raises when ffprobe cannot be run or its output cannot be parsed.
    """
    data = _ffprobe_json(path, "stream=index,codec_type,codec_name", ffprobe)
    streams = data.get("streams") or []

    video_streams = [s for s in streams if s.get("codec_type") == "video"]
    if not video_streams or not video_streams[0].get("codec_name"):
        return None

    audio_codecs = tuple(
        AudioCodec.from_name(s.get("codec_name"))
        for s in streams if s.get("codec_type") == "audio"
    )
    return CodecProfile(
        video_codec=VideoCodec.from_name(video_streams[0]["codec_name"]),
        audio_codecs=audio_codecs,
    )


def probe_duration(path: Path, ffprobe: str = "ffprobe") -> Optional[float]:
    """Return the container duration in seconds, or None when unknown."""
    try:
        data = _ffprobe_json(path, "format=duration", ffprobe)
        return float(data["format"]["duration"])
    except (OSError, RuntimeError, ValueError, KeyError, TypeError):
        return None


class CodecInspector:
    """Decides whether a container can be remuxed without re-encoding."""

    def __init__(self, source_ext: str = SOURCE_EXTENSION, ffprobe: str = "ffprobe"):
        self.source_ext = source_ext.lower()
        self.ffprobe = ffprobe

    def is_eligible(self, path: Path) -> bool:
        """
        Return True when `path` has the source extension, its first video
        stream is H.264 or HEVC and every audio stream is on the audio
        allow-list. Never raises: read or parse failures answer False.
        """
        path = Path(path)
        if path.suffix.lower() != self.source_ext:
            logger.log("inspect.skip", LogLevel.TRACE, file=path.name, reason="extension")
            return False

        try:
            profile = probe_codec_profile(path, self.ffprobe)
        except (OSError, RuntimeError, ValueError) as e:
            logger.log("inspect.failed", LogLevel.WARN, file=path.name, error=str(e))
            return False

        if profile is None:
            logger.log("inspect.no_video", LogLevel.DEBUG, file=path.name)
            return False

        eligible = profile.is_remuxable
        logger.log(
            "inspect.result",
            LogLevel.DEBUG,
            file=path.name,
            video=profile.video_codec.value,
            audio=",".join(c.value for c in profile.audio_codecs) or None,
            eligible=eligible,
        )
        return eligible

    def classify(self, candidate: MediaCandidate) -> MediaCandidate:
        """Record the inspector's verdict on a candidate and return it."""
        candidate.eligibility = Eligibility.ELIGIBLE if self.is_eligible(candidate.path) else Eligibility.INELIGIBLE
        return candidate
