"""One processing pass: promote, list, derive, merge, write back, invalidate."""

import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime

from src import feed_merger, metadata, object_lister
from src.exceptions import (
    FeedWriteError,
    ObjectNotFoundError,
    ProcessingInProgressError,
    StoreError,
)
from src.feed_cache import FeedCache
from src.models import ProcessResult

logger = logging.getLogger(__name__)

FEED_CONTENT_TYPE = "application/rss+xml; charset=utf-8"


class FeedProcessor:
    """Runs processing passes against one bucket and one index object.

    Passes are serialized per instance with a lock. Nothing here guards
    against a second service instance running a pass at the same time; a
    deployment must keep at most one instance triggering /process.
    """

    def __init__(
        self,
        store,
        cache: FeedCache,
        *,
        index_key: str = "index.xml",
        files_prefix: str = object_lister.DEFAULT_FILES_PREFIX,
        base_url: str,
        promote_root_objects: bool = True,
        seed: Callable[[], str] | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.store = store
        self.cache = cache
        self.index_key = index_key
        self.files_prefix = files_prefix
        self.base_url = base_url
        self.promote_root_objects = promote_root_objects
        self._seed = seed
        self._clock = clock or (lambda: datetime.now(UTC))
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._lock.locked()

    def run(self) -> ProcessResult:
        """Run one full pass.

        Raises:
            ProcessingInProgressError: another pass holds the lock.
            ListingError, PromotionError, StoreError: the pass aborted
                before writing; index.xml is unchanged.
            FeedWriteError: the merged document could not be written.
        """
        if not self._lock.acquire(blocking=False):
            raise ProcessingInProgressError("A processing pass is already running")
        try:
            return self._run()
        finally:
            self._lock.release()

    def _run(self) -> ProcessResult:
        logger.info("Starting file processing...")
        result = ProcessResult()

        if self.promote_root_objects:
            # Materialize first: promoting while iterating would mutate the listing.
            for obj in list(object_lister.list_audio_objects(self.store, top_level_only=True)):
                dest = object_lister.promote(self.store, obj.name, self.files_prefix)
                if dest != obj.name:
                    result.promoted.append(dest)

        existing, found = self._read_existing()

        records = []
        now = self._clock()
        for obj in object_lister.list_audio_objects(self.store, self.files_prefix):
            if feed_merger.references(existing, obj.name):
                continue
            logger.info("processing object=%r size=%d", obj.name, obj.size)
            records.append(metadata.derive(obj.name, obj.size, now))

        new_content = feed_merger.merge(existing, records, self.base_url)
        result.items_added = len(records)

        if found and new_content == existing:
            logger.info("No new items; %s left unchanged", self.index_key)
            return result

        try:
            self.store.write(self.index_key, new_content.encode("utf-8"), FEED_CONTENT_TYPE)
        except StoreError as e:
            raise FeedWriteError(f"Failed to write {self.index_key}: {e}") from e
        result.written = True
        self.cache.invalidate()

        logger.info("Updated %s with %d items", self.index_key, len(records))
        return result

    def _read_existing(self) -> tuple[str, bool]:
        """Read index.xml straight from the store, bypassing the cache.

        Returns (content, found). An absent object is the one store error
        that is not fatal: the pass starts from the seed or an empty string.
        """
        try:
            return self.store.read(self.index_key).decode("utf-8"), True
        except ObjectNotFoundError:
            logger.warning("%s not found, starting a new feed", self.index_key)
            if self._seed is not None:
                return self._seed(), False
            return "", False
