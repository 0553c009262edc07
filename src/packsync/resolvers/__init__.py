"""Content and metadata resolvers."""

from .base import ContentResolver, IdentifiedContent, MetadataResolver, RemoteFile
from .direct import DirectDownloadResolver, curseforge_cdn_url

__all__ = [
    "ContentResolver",
    "MetadataResolver",
    "RemoteFile",
    "IdentifiedContent",
    "DirectDownloadResolver",
    "curseforge_cdn_url",
]
