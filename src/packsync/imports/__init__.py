"""Manifest import, conflict resolution and remote sync."""

from .coordinator import ImportCoordinator
from .manifest import NATIVE_FORMAT, export_manifest, parse_loader_id, parse_manifest
from .remote import RemoteCheck, RemoteManifestClient, RemoteSync

__all__ = [
    "ImportCoordinator",
    "NATIVE_FORMAT",
    "export_manifest",
    "parse_loader_id",
    "parse_manifest",
    "RemoteCheck",
    "RemoteManifestClient",
    "RemoteSync",
]
