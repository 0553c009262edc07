"""Collaborator interfaces for content and metadata resolution.

The reconciliation engine and import coordinator never talk to a catalog or
open an archive themselves. They go through these two interfaces, so any
upstream (a CurseForge client, a Modrinth client, a local mirror, a test
double) can be plugged in.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from ..models import ContentBucket
from ..models.sources import CurseForgeSource, LocalSource, ModrinthSource

AnySource = CurseForgeSource | ModrinthSource | LocalSource


@dataclass
class RemoteFile:
    """
    A concrete upstream file, as reported by a content resolver.

    Attributes:
        source: Fully-qualified source reference for the file
        filename: File name on disk
        name: Project display name
        version: Version string of this file
        loader: Loader the file targets, if known
        target_versions: Runtime versions the file declares support for
        bucket: Content bucket the file belongs in
    """

    source: AnySource
    filename: str
    name: str | None = None
    version: str = ""
    loader: str = ""
    target_versions: list[str] = field(default_factory=list)
    bucket: ContentBucket = ContentBucket.MOD
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class IdentifiedContent:
    """What a metadata resolver could tell about a file's bytes."""

    name: str
    version: str = ""
    loader: str = ""
    target_version: str = ""
    bucket: ContentBucket = ContentBucket.MOD
    metadata: dict[str, Any] = field(default_factory=dict)


class ContentResolver(ABC):
    """Fetches bytes and file information from upstream catalogs."""

    @abstractmethod
    async def fetch(self, source: AnySource, filename: str | None = None) -> bytes:
        """
        Download the bytes for a source.

        Raises:
            ContentFetchError: If the content cannot be produced
        """

    @abstractmethod
    async def find_compatible_file(
        self, kind: str, project_id: int | str, target_version: str, loader: str
    ) -> RemoteFile | None:
        """Newest file of a project matching a runtime version and loader."""

    async def lookup_file(self, source: AnySource) -> RemoteFile | None:
        """Details for one known file. Resolvers without a catalog return None."""
        return None

    async def close(self) -> None:
        """Release any held connections."""
        return None


class MetadataResolver(ABC):
    """Identifies content from raw file bytes."""

    @abstractmethod
    def identify(self, data: bytes, filename: str) -> IdentifiedContent | None:
        """Return what the bytes are, or None if they cannot be identified."""
