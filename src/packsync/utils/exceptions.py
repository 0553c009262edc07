"""Custom exceptions for packsync.

Exception Hierarchy:
-------------------
PacksyncError (base)
├── ValidationError
│   └── ManifestError            # Unparseable or unsupported pack manifest
├── DocumentCorruptError         # Persisted document could not be decoded
├── InstanceUnavailableError     # Target instance missing/unreadable (structural)
├── ContentFetchError            # Resolver failed to produce bytes for one item
└── RemoteSourceError            # Remote manifest URL could not be fetched

Usage Guidelines:
----------------
1. Unknown modpack, mod or version ids are NOT exceptions. Store and version
   control calls return None/False for those, so callers never crash on a
   stale id.

2. Import conflicts are data (ImportConflict), not exceptions.

3. Per-item failures inside a batch (ContentFetchError) are caught by the
   applier and aggregated into ApplyResult.errors. Only
   InstanceUnavailableError aborts an apply.

4. DocumentCorruptError never escapes the document store: the store recovers
   or quarantines the offending file and carries on.
"""


class PacksyncError(Exception):
    """Base exception for all packsync errors."""

    pass


class ValidationError(PacksyncError):
    """Raised when input validation fails."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        """
        Initialize ValidationError.

        Args:
            message: Error message.
            original_error: Optional original exception that caused this error.
        """
        super().__init__(message)
        self.original_error = original_error


class ManifestError(ValidationError):
    """Raised when a pack manifest cannot be parsed."""

    pass


class DocumentCorruptError(PacksyncError):
    """Raised when a persisted document cannot be decoded."""

    def __init__(self, path: str, reason: str) -> None:
        """
        Initialize DocumentCorruptError.

        Args:
            path: Path of the offending document.
            reason: Decoder error description.
        """
        super().__init__(f"Corrupt document {path}: {reason}")
        self.path = path
        self.reason = reason


class InstanceUnavailableError(PacksyncError):
    """Raised when the target instance directory cannot be used at all."""

    def __init__(self, path: str, reason: str = "instance directory not found") -> None:
        super().__init__(f"Instance unavailable at {path}: {reason}")
        self.path = path
        self.reason = reason


class ContentFetchError(PacksyncError):
    """Raised when a content resolver cannot fetch one item."""

    def __init__(self, key: str, message: str, status_code: int | None = None) -> None:
        """
        Initialize ContentFetchError.

        Args:
            key: Source key of the item (e.g. 'cf-100-2').
            message: Error message.
            status_code: Optional HTTP status code.
        """
        super().__init__(f"Failed to fetch {key}: {message}")
        self.key = key
        self.status_code = status_code


class RemoteSourceError(PacksyncError):
    """Raised when a remote manifest cannot be fetched or decoded."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"Remote source {url}: {message}")
        self.url = url
