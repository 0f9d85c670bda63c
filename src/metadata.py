"""Derive episode metadata from audio object names."""

import posixpath
from datetime import UTC, datetime
from email.utils import format_datetime

from src.models import EpisodeRecord
from src.object_lister import AUDIO_SUFFIXES


def derive_title(object_name: str) -> str:
    """Turn an object name into an episode title.

    Underscores and digits each become one space and only trailing
    whitespace is trimmed, so "ep_01_intro.mp3" gives "ep    intro".
    Runs of spaces are intentionally left alone.
    """
    base = posixpath.basename(object_name)
    stem = base
    for suffix in AUDIO_SUFFIXES:
        if base.lower().endswith(suffix):
            stem = base[: -len(suffix)]
            break
    title = "".join(" " if ch == "_" or ch in "0123456789" else ch for ch in stem)
    return title.rstrip()


def format_pub_date(now: datetime | None = None) -> str:
    """Format ``now`` as an RFC-822 date in GMT, independent of locale."""
    if now is None:
        now = datetime.now(UTC)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return format_datetime(now.astimezone(UTC), usegmt=True)


def derive(object_name: str, size_bytes: int, now: datetime | None = None) -> EpisodeRecord:
    """Build the EpisodeRecord for one audio object.

    Args:
        object_name: Store key, e.g. "files/my_show_01.mp3".
        size_bytes: Object size as reported by the store.
        now: Processing time; defaults to the wall clock.
    """
    return EpisodeRecord(
        title=derive_title(object_name),
        pub_date=format_pub_date(now),
        object_path=object_name,
        size_bytes=size_bytes,
    )
