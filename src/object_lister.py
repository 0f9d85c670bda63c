"""Discover audio objects in the bucket and promote root uploads under files/."""

import logging
import posixpath
from collections.abc import Iterator

from src.exceptions import ListingError, PromotionError, StoreError
from src.models import AudioObject

logger = logging.getLogger(__name__)

AUDIO_SUFFIXES = (".mp3", ".m4a")
DEFAULT_FILES_PREFIX = "files/"


def is_audio(name: str) -> bool:
    """True when the lowercased name ends in an accepted audio suffix."""
    return name.lower().endswith(AUDIO_SUFFIXES)


def list_audio_objects(store, prefix: str = "", top_level_only: bool = False) -> Iterator[AudioObject]:
    """Lazily enumerate audio objects under ``prefix``.

    With ``top_level_only`` anything "inside a folder" is skipped, which is
    how uploads dropped at the bucket root are found. Every call re-lists.

    Raises:
        ListingError: if the store fails at any point during enumeration.
    """
    delimiter = "/" if top_level_only else None
    try:
        for obj in store.list(prefix, delimiter=delimiter):
            if top_level_only and "/" in obj.name[len(prefix):]:
                continue
            if not is_audio(obj.name):
                continue
            yield AudioObject(name=obj.name, size=obj.size)
    except StoreError as e:
        raise ListingError(f"list objects under {prefix!r}: {e}") from e


def promote(store, object_name: str, prefix: str = DEFAULT_FILES_PREFIX) -> str:
    """Move ``object_name`` under ``prefix`` and return the destination key.

    Copy-then-delete. A failed copy aborts without deleting. A failed delete
    leaves the object at both keys and is only logged, since the copy under
    the prefix is already usable; the next pass retries the move.
    """
    dest = prefix + posixpath.basename(object_name)
    if object_name == dest:
        return dest

    try:
        store.copy(object_name, dest)
    except StoreError as e:
        raise PromotionError(f"copy {object_name!r} -> {dest!r}: {e}") from e

    try:
        store.delete(object_name)
    except StoreError as e:
        logger.warning("Copied %s to %s but could not delete the original: %s", object_name, dest, e)
        return dest

    logger.info("Promoted %s -> %s", object_name, dest)
    return dest
