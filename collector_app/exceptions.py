"""
Errors surfaced by the collector.

Malformed client input and failed enrichment lookups never show up here:
the resolver recovers from those locally by substituting defaults.
"""


class CollectorError(Exception):
    """Base class for collector errors"""


class StorageError(CollectorError):
    """The visitor store could not complete an operation"""


class StorageUnavailable(StorageError):
    """Database unreachable, timed out, or failed mid-statement"""


class StorageConstraintViolation(StorageError):
    """A unique constraint kept failing after the allowed retries"""


class RateLimitExceeded(CollectorError):
    """Caller used up its request quota for the current window"""

    def __init__(self, retry_after_ms: int = 0):
        super().__init__(f"Rate limit exceeded, retry in {retry_after_ms} ms")
        self.retry_after_ms = retry_after_ms
