"""Utility functions and exceptions."""

from .exceptions import (
    ContentFetchError,
    DocumentCorruptError,
    InstanceUnavailableError,
    ManifestError,
    PacksyncError,
    RemoteSourceError,
    ValidationError,
)

__all__ = [
    "PacksyncError",
    "ValidationError",
    "ManifestError",
    "DocumentCorruptError",
    "InstanceUnavailableError",
    "ContentFetchError",
    "RemoteSourceError",
]
