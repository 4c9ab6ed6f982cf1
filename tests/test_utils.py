"""Tests for the shared helpers: file scanning, binaries, events and logging."""

import os
import stat

import pytest

from reelkit.utils import LogLevel, constants, file_util, logger, system_util
from reelkit.utils.events import DirectoryEvents


def test_list_files_filters_hidden_dirs_and_extensions(tmp_path, touch):
    touch(tmp_path / "a.mkv")
    touch(tmp_path / "B.MKV")
    touch(tmp_path / "c.mp4")
    touch(tmp_path / ".hidden.mkv")
    (tmp_path / "folder.mkv").mkdir()

    names = sorted(p.name for p in file_util.list_files(tmp_path, [".mkv"]))

    assert names == ["B.MKV", "a.mkv"]


def test_list_files_missing_directory(tmp_path):
    with pytest.raises(OSError):
        file_util.list_files(tmp_path / "missing", [".mkv"])


def test_sidecar_and_backup_paths(tmp_path):
    media = tmp_path / "My Movie.MKV"
    assert file_util.sidecar_path(media) == tmp_path / ".video_info" / "my movie.png"
    assert file_util.backup_path(media) == tmp_path / "My Movie.MKV.bak"


def test_sanitize_and_collapse():
    assert file_util.sanitize_filename(' a<b>:c"d/e\\f|g?h*i ') == "abcdefghi"
    assert file_util.collapse_whitespace("  a \t b\n c ") == "a b c"


def test_find_binary_prefers_override(tmp_path):
    tool = tmp_path / "my-ffmpeg"
    tool.write_text("#!/bin/sh\n")
    tool.chmod(tool.stat().st_mode | stat.S_IXUSR)

    assert system_util.find_binary("ffmpeg", str(tool)) == str(tool)
    assert system_util.find_binary("ffmpeg", str(tmp_path / "absent")) is None


def test_find_binary_checks_homebrew_dirs(tmp_path, monkeypatch):
    tool = tmp_path / "ffprobe"
    tool.write_text("#!/bin/sh\n")
    tool.chmod(tool.stat().st_mode | stat.S_IXUSR)
    monkeypatch.setenv("PATH", os.devnull)
    monkeypatch.setattr(constants, "HOMEBREW_BIN_DIRS", (str(tmp_path / "nope"), str(tmp_path)))

    assert system_util.find_binary("ffprobe") == str(tool)
    assert system_util.find_binary("ffmpeg-not-installed") is None


def test_which_or_die_exits_with_status_2(monkeypatch):
    monkeypatch.setattr(system_util, "find_binary", lambda name, override=None: None)
    with pytest.raises(SystemExit) as excinfo:
        system_util.which_or_die("ffmpeg")
    assert excinfo.value.code == 2


def test_events_subscribe_and_unsubscribe(tmp_path):
    events = DirectoryEvents()
    seen = []
    events.subscribe(seen.append)
    events.notify_changed(tmp_path)
    events.unsubscribe(seen.append)
    events.unsubscribe(seen.append)
    events.notify_changed(tmp_path)
    assert seen == [tmp_path]


def test_events_isolate_failing_listeners(tmp_path):
    events = DirectoryEvents()
    seen = []

    def broken(directory):
        raise RuntimeError("boom")

    events.subscribe(broken)
    events.subscribe(seen.append)
    events.notify_changed(tmp_path)

    assert seen == [tmp_path]


def test_log_level_from_name():
    assert LogLevel.from_name("warn") is LogLevel.WARN
    assert LogLevel.from_name(" debug ") is LogLevel.DEBUG
    assert LogLevel.from_name("loud") is LogLevel.INFO
    assert LogLevel.from_name("loud", LogLevel.ERROR) is LogLevel.ERROR


@pytest.fixture
def restore_log_level():
    previous = logger.get_log_level()
    yield
    logger.set_log_level(previous)


def test_log_line_format(capsys, restore_log_level):
    logger.set_log_level(LogLevel.INFO)
    logger.log("remux.complete", LogLevel.INFO, file='a "b".mkv', ratio=0.5, ok=True, err=None, count=3)
    logger.log("remux.noise", LogLevel.DEBUG, file="hidden")

    out = capsys.readouterr().out.strip().splitlines()

    assert len(out) == 1
    fields = out[0].split(" | ")
    assert fields[1] == "[INFO]"
    assert fields[2] == "remux.complete"
    assert fields[3:] == ['file="a \\"b\\".mkv"', "ratio=0.500", "ok=true", "err=null", "count=3", 'worker="main"']
