"""
Batch remuxing and filename cleanup for local video libraries.

This package provides the processing core behind a video browser:

- remux: inspect MKV containers with ffprobe and, when the codecs allow it,
  repack them into MP4 with ffmpeg stream copy, keeping the original as
  `<name>.bak`.
- rename: clean up file names with an ordered set of search/replace rules,
  preview the result, then apply it while keeping thumbnails in
  `.video_info/` in sync.
- utils: configuration, structured logging, and filesystem/system helpers.
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
