"""Tests for codec inspection and the remux eligibility verdict."""

import pytest

from reelkit.remux import probe
from reelkit.remux.probe import (
    AudioCodec,
    CodecInspector,
    CodecProfile,
    Eligibility,
    MediaCandidate,
    VideoCodec,
)
from reelkit.utils import system_util


def test_codec_name_mapping():
    assert VideoCodec.from_name("H264") is VideoCodec.H264
    assert VideoCodec.from_name("hevc") is VideoCodec.HEVC
    assert VideoCodec.from_name("prores") is VideoCodec.UNKNOWN
    assert VideoCodec.from_name(None) is VideoCodec.UNKNOWN
    assert AudioCodec.from_name("pcm_s24le") is AudioCodec.PCM
    assert AudioCodec.from_name("dts") is AudioCodec.DTS
    assert AudioCodec.from_name("") is AudioCodec.UNKNOWN


def test_profile_allow_lists():
    assert CodecProfile(VideoCodec.H264, (AudioCodec.AAC, AudioCodec.MP3)).is_remuxable
    assert CodecProfile(VideoCodec.HEVC).is_remuxable
    assert not CodecProfile(VideoCodec.VP9, (AudioCodec.AAC,)).is_remuxable
    assert not CodecProfile(VideoCodec.HEVC, (AudioCodec.AAC, AudioCodec.TRUEHD)).is_remuxable


@pytest.mark.parametrize(
    "video,audio,expected",
    [
        ("h264", ("aac",), True),
        ("hevc", ("aac", "mp3", "pcm_s16le"), True),
        ("h264", (), True),
        ("mpeg4", ("aac",), False),
        ("vp9", (), False),
        ("hevc", ("aac", "dts"), False),
        ("h264", ("flac",), False),
    ],
)
def test_is_eligible_by_codec(tmp_path, fake_ffprobe, video, audio, expected):
    fake_ffprobe.add("movie.mkv", video=video, audio=audio)
    assert CodecInspector().is_eligible(tmp_path / "movie.mkv") is expected


def test_wrong_extension_is_rejected_without_probing(tmp_path, fake_ffprobe):
    fake_ffprobe.add("clip.mp4")
    assert CodecInspector().is_eligible(tmp_path / "clip.mp4") is False
    assert fake_ffprobe.calls == []


def test_extension_match_is_case_insensitive(tmp_path, fake_ffprobe):
    fake_ffprobe.add("MOVIE.MKV")
    assert CodecInspector().is_eligible(tmp_path / "MOVIE.MKV") is True


def test_no_video_stream_is_ineligible(tmp_path, fake_ffprobe):
    fake_ffprobe.add("audio_only.mkv", video=None, audio=("aac",))
    assert CodecInspector().is_eligible(tmp_path / "audio_only.mkv") is False


def test_audio_stream_without_codec_name_is_ineligible(tmp_path, fake_ffprobe):
    fake_ffprobe.add("odd.mkv", audio=("aac", None))
    assert CodecInspector().is_eligible(tmp_path / "odd.mkv") is False


def test_only_first_video_stream_is_examined(tmp_path, monkeypatch):
    out = (
        '{"streams": ['
        '{"index": 0, "codec_type": "video", "codec_name": "h264"},'
        '{"index": 1, "codec_type": "video", "codec_name": "mjpeg"},'
        '{"index": 2, "codec_type": "audio", "codec_name": "aac"}]}'
    )
    monkeypatch.setattr(system_util, "run_cmd", lambda cmd: (0, out, ""))
    profile = probe.probe_codec_profile(tmp_path / "two_video.mkv")
    assert profile == CodecProfile(VideoCodec.H264, (AudioCodec.AAC,))
    assert CodecInspector().is_eligible(tmp_path / "two_video.mkv") is True


def test_ffprobe_failure_fails_closed(tmp_path, fake_ffprobe):
    # unknown file -> ffprobe exits non-zero
    assert CodecInspector().is_eligible(tmp_path / "corrupt.mkv") is False


def test_garbage_output_fails_closed(tmp_path, monkeypatch):
    monkeypatch.setattr(system_util, "run_cmd", lambda cmd: (0, "not json", ""))
    assert CodecInspector().is_eligible(tmp_path / "movie.mkv") is False


def test_missing_ffprobe_binary_fails_closed(tmp_path, monkeypatch):
    def boom(cmd):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr(system_util, "run_cmd", boom)
    assert CodecInspector().is_eligible(tmp_path / "movie.mkv") is False


def test_classify_updates_candidate(tmp_path, fake_ffprobe):
    fake_ffprobe.add("good.mkv")
    fake_ffprobe.add("bad.mkv", video="vc1")
    inspector = CodecInspector()

    good = inspector.classify(MediaCandidate(tmp_path / "good.mkv"))
    bad = inspector.classify(MediaCandidate(tmp_path / "bad.mkv"))

    assert good.eligibility is Eligibility.ELIGIBLE
    assert bad.eligibility is Eligibility.INELIGIBLE


def test_probe_duration(tmp_path, fake_ffprobe):
    fake_ffprobe.add("movie.mkv", duration="125.5")
    assert probe.probe_duration(tmp_path / "movie.mkv") == pytest.approx(125.5)
    assert probe.probe_duration(tmp_path / "unknown.mkv") is None
