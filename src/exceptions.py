"""Custom exception hierarchy for the podcast processor."""


class PodcastProcessorError(Exception):
    """Base exception for all podcast processor errors."""


class ConfigError(PodcastProcessorError):
    """Raised when required configuration is missing at startup."""


class StoreError(PodcastProcessorError):
    """Raised when an object store operation fails."""


class ObjectNotFoundError(StoreError):
    """Raised when the requested object does not exist in the store."""


class ListingError(PodcastProcessorError):
    """Raised when enumerating audio objects fails."""


class PromotionError(PodcastProcessorError):
    """Raised when moving a root object under the files prefix fails."""


class FeedWriteError(PodcastProcessorError):
    """Raised when writing the merged feed back to the store fails."""


class ProcessingInProgressError(PodcastProcessorError):
    """Raised when a processing pass is already running in this process."""
