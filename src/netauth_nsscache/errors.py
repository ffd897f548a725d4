"""Exception types raised while building the NSS caches."""

from __future__ import annotations

from pathlib import Path


class NssCacheError(Exception):
    """Base class for every error the cache builder raises."""


class ConfigError(NssCacheError):
    """Configuration or host setup is unusable; nothing has been written."""


class DirectorySourceError(NssCacheError):
    """The directory source failed to answer a query."""


class IndexFormatError(NssCacheError):
    """An index record cannot be built or parsed in the fixed-width layout."""


class CacheWriteError(NssCacheError):
    """One or more cache files could not be written.

    Raised only after every file has been attempted; ``failures`` holds the
    path and the underlying error for each file that failed.
    """

    def __init__(self, failures: list[tuple[Path, Exception]]) -> None:
        paths = ", ".join(str(p) for p, _ in failures)
        super().__init__(f"Failed to write {len(failures)} file(s): {paths}")
        self.failures = failures
