"""Data models for the podcast processor."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class StoredObject:
    """An object as reported by the store listing."""

    name: str
    size: int


@dataclass(frozen=True)
class AudioObject:
    """A candidate audio object selected by the lister."""

    name: str
    size: int


@dataclass(frozen=True)
class EpisodeRecord:
    """Episode metadata derived from one audio object."""

    title: str
    pub_date: str  # RFC-822, e.g. "Mon, 02 Jan 2006 15:04:05 GMT"
    object_path: str  # e.g. "files/my_show_01.mp3"
    size_bytes: int


@dataclass
class ProcessResult:
    """Outcome of one processing pass."""

    items_added: int = 0
    promoted: list[str] = field(default_factory=list)
    written: bool = False
