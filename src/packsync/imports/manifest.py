"""Manifest parsing and export.

Two manifest shapes are understood:

CurseForge ``manifest.json``::

    {"manifestType": "minecraftModpack", "name": "...", "version": "...",
     "minecraft": {"version": "1.20.1",
                   "modLoaders": [{"id": "forge-47.2.0", "primary": true}]},
     "files": [{"projectID": 238222, "fileID": 4712345, "required": true}],
     "overrides": "overrides"}

packsync export::

    {"format": "packsync",
     "modpack": {"name": "...", "version": "...", "target_version": "...",
                 "loader": "...", "loader_version": "...", "description": "..."},
     "mods": [{"source": {"kind": "modrinth", ...}, "name": "...",
               "filename": "...", "version": "...", "bucket": "mod",
               "enabled": true}]}

Both are normalised into an ``ImportManifest`` whose entries carry typed
source references, so nothing downstream looks at raw manifest fields.
"""

import json
import re
from typing import Any

import pydantic
import structlog

from ..models import (
    CurseForgeSource,
    ImportManifest,
    ManifestEntry,
    ModpackDefinition,
    ModRecord,
)
from ..utils.exceptions import ManifestError

logger = structlog.get_logger(__name__)

NATIVE_FORMAT = "packsync"

_FABRIC_LOADER = re.compile(r"^fabric-loader-(.+)$")
_LOADER_ID = re.compile(r"^(forge|neoforge|fabric|quilt)-(.+)$", re.IGNORECASE)


def parse_loader_id(loader_id: str) -> tuple[str, str | None]:
    """
    Split a loader id into loader name and version.

    >>> parse_loader_id("forge-47.2.0")
    ('forge', '47.2.0')
    >>> parse_loader_id("fabric-loader-0.15.0")
    ('fabric', '0.15.0')
    >>> parse_loader_id("vanilla")
    ('vanilla', None)
    """
    loader_id = loader_id.strip()
    match = _FABRIC_LOADER.match(loader_id)
    if match:
        return "fabric", match.group(1)
    match = _LOADER_ID.match(loader_id)
    if match:
        return match.group(1).lower(), match.group(2)
    return loader_id.lower(), None


def _load(data: dict[str, Any] | str | bytes) -> dict[str, Any]:
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise ManifestError(f"Manifest is not valid JSON: {e}", original_error=e) from e
    if not isinstance(data, dict):
        raise ManifestError(f"Manifest must be a JSON object, got {type(data).__name__}")
    return data


def _parse_curseforge(data: dict[str, Any]) -> ImportManifest:
    minecraft = data.get("minecraft") or {}
    loaders = minecraft.get("modLoaders") or []
    primary = next((ml for ml in loaders if ml.get("primary")), loaders[0] if loaders else None)
    loader, loader_version = ("", None)
    if primary and primary.get("id"):
        loader, loader_version = parse_loader_id(str(primary["id"]))

    entries = []
    for index, item in enumerate(data.get("files") or []):
        try:
            source = CurseForgeSource(project_id=item["projectID"], file_id=item["fileID"])
        except (KeyError, TypeError, pydantic.ValidationError) as e:
            raise ManifestError(f"Invalid file entry #{index}: {item!r}", original_error=e) from e
        entries.append(
            ManifestEntry(
                source=source,
                # Optional files are shipped disabled
                enabled=bool(item.get("required", True)),
            )
        )

    return ImportManifest(
        format="curseforge",
        name=str(data.get("name") or "Imported modpack"),
        version=str(data.get("version") or "1.0.0"),
        target_version=str(minecraft.get("version") or ""),
        loader=loader,
        loader_version=loader_version,
        author=data.get("author"),
        overrides=data.get("overrides"),
        entries=entries,
    )


def _parse_native(data: dict[str, Any]) -> ImportManifest:
    meta = data.get("modpack") or {}
    try:
        return ImportManifest(
            format="packsync",
            name=meta.get("name") or "Imported modpack",
            version=meta.get("version") or "1.0.0",
            target_version=meta.get("target_version") or "",
            loader=meta.get("loader") or "",
            loader_version=meta.get("loader_version"),
            description=meta.get("description") or "",
            author=meta.get("author"),
            overrides=data.get("overrides"),
            entries=[ManifestEntry.model_validate(item) for item in data.get("mods") or []],
        )
    except pydantic.ValidationError as e:
        raise ManifestError(f"Invalid packsync manifest: {e}", original_error=e) from e


def parse_manifest(data: dict[str, Any] | str | bytes) -> ImportManifest:
    """
    Parse a CurseForge or packsync manifest.

    Entries repeating the same source key are collapsed to the first one.

    Raises:
        ManifestError: If the document is not a recognised manifest
    """
    raw = _load(data)
    if raw.get("format") == NATIVE_FORMAT or "mods" in raw:
        manifest = _parse_native(raw)
    elif "files" in raw and ("minecraft" in raw or raw.get("manifestType") == "minecraftModpack"):
        manifest = _parse_curseforge(raw)
    else:
        raise ManifestError("Unrecognised manifest: expected a CurseForge or packsync manifest")

    seen: set[str] = set()
    unique = []
    for entry in manifest.entries:
        if entry.key in seen:
            logger.debug("Duplicate manifest entry dropped", key=entry.key)
            continue
        seen.add(entry.key)
        unique.append(entry)
    manifest.entries = unique

    logger.debug(
        "Manifest parsed", format=manifest.format, name=manifest.name, entries=len(unique)
    )
    return manifest


def export_manifest(definition: ModpackDefinition, records: list[ModRecord]) -> dict[str, Any]:
    """
    Build a packsync manifest for a modpack.

    Only catalog-sourced records are exported; local files cannot be
    fetched by anyone else.
    """
    disabled = set(definition.disabled_ids)
    mods = []
    for record in records:
        if record.source.kind == "local":
            continue
        mods.append(
            {
                "source": record.source.model_dump(mode="json", exclude_none=True),
                "name": record.name,
                "filename": record.filename,
                "version": record.version,
                "bucket": record.bucket.value,
                "enabled": record.id not in disabled,
            }
        )
    return {
        "format": NATIVE_FORMAT,
        "modpack": {
            "name": definition.name,
            "version": definition.version,
            "target_version": definition.target_version,
            "loader": definition.loader,
            "loader_version": definition.loader_version,
            "description": definition.description,
        },
        "mods": mods,
    }
