"""Shared fixtures for the reelkit test suite."""

import json
from pathlib import Path

import pytest

from reelkit.utils import system_util


class FakeProbe:
    """Stands in for ffprobe: answers from canned stream lists keyed by file name."""

    def __init__(self):
        self.streams = {}
        self.calls = []

    def add(self, name, video="h264", audio=("aac",), duration="60.0"):
        streams = []
        if video is not None:
            streams.append({"index": 0, "codec_type": "video", "codec_name": video})
        for codec in audio:
            stream = {"index": len(streams), "codec_type": "audio"}
            if codec is not None:
                stream["codec_name"] = codec
            streams.append(stream)
        self.streams[name] = {"streams": streams, "duration": duration}

    def run_cmd(self, cmd):
        self.calls.append(cmd)
        name = Path(cmd[-1]).name
        if name not in self.streams:
            return 1, "", f"{name}: Invalid data found when processing input"
        entry = self.streams[name]
        if cmd[cmd.index("-show_entries") + 1].startswith("format"):
            return 0, json.dumps({"format": {"duration": entry["duration"]}}), ""
        return 0, json.dumps({"streams": entry["streams"]}), ""

    def probed(self):
        """Names of files whose streams were queried, in call order."""
        return [Path(c[-1]).name for c in self.calls if "stream" in c[c.index("-show_entries") + 1]]


@pytest.fixture
def fake_ffprobe(monkeypatch):
    probe = FakeProbe()
    monkeypatch.setattr(system_util, "run_cmd", probe.run_cmd)
    return probe


@pytest.fixture
def touch():
    def _touch(path: Path, content: bytes = b"data") -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path

    return _touch
