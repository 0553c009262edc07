"""Import coordinator - bring external manifests into the catalog and a modpack.

Flow:
----
    begin(manifest)
        |
        +-- scan every entry against the catalog
        |       same key            -> reuse the existing record
        |       same project, other -> conflict (collected)
        |       otherwise           -> new record (registered later)
        |
        +-- no conflicts -> complete now, status "clean"
        +-- conflicts    -> persist a PendingImport token, status "conflicted"
                            (catalog and modpack untouched)

    resolve(token, {key: use_existing | use_new})
        -> register records, add members, commit "Import from <name>"

Tokens are kept in the document store until resolved, discarded, or
older than the configured TTL.
"""

import asyncio
import hashlib
import uuid
from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta, timezone
from pathlib import Path

import structlog

from ..config import ImportConfig
from ..library.catalog import CatalogStore
from ..library.modpacks import ModpackStore
from ..models import (
    ConflictResolution,
    ContentBucket,
    ImportConflict,
    ImportManifest,
    ImportOutcome,
    ImportResult,
    ImportStatus,
    LocalSource,
    ManifestEntry,
    ModRecord,
    PendingImport,
)
from ..models.records import DISABLED_SUFFIX, check_filename
from ..observability.logger import LogContext
from ..observability.metrics import MetricsCollector, get_global_collector
from ..persistence.documents import DocumentStore
from ..resolvers.base import ContentResolver, MetadataResolver
from ..utils.exceptions import ValidationError
from ..versioning.history import VersionControl

logger = structlog.get_logger(__name__)

_BUCKET_EXTENSIONS = {
    ContentBucket.MOD: ".jar",
    ContentBucket.RESOURCEPACK: ".zip",
    ContentBucket.SHADER: ".zip",
}


class ImportCoordinator:
    """Cross-source import with caller-driven conflict resolution."""

    def __init__(
        self,
        store: DocumentStore,
        catalog: CatalogStore,
        modpacks: ModpackStore,
        versions: VersionControl,
        resolver: ContentResolver | None = None,
        metadata: MetadataResolver | None = None,
        config: ImportConfig | None = None,
        collector: MetricsCollector | None = None,
    ) -> None:
        self._store = store
        self.catalog = catalog
        self.modpacks = modpacks
        self.versions = versions
        self.resolver = resolver
        self.metadata = metadata
        self.config = config or ImportConfig()
        self.collector = collector or get_global_collector()

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------

    async def _build_record(
        self, entry: ManifestEntry, manifest: ImportManifest, warnings: list[str]
    ) -> ModRecord:
        """Turn a manifest entry into a catalog record, asking the resolver for gaps."""
        name, filename, version = entry.name, entry.filename, entry.version
        bucket, metadata = entry.bucket, dict(entry.metadata)
        loader = manifest.loader

        if (not name or not filename) and self.resolver is not None:
            info = await self.resolver.lookup_file(entry.source)
            if info is not None:
                name = name or info.name
                if not filename and info.filename:
                    try:
                        filename = check_filename(info.filename)
                    except ValueError as e:
                        warnings.append(f"{entry.key}: ignoring resolver file name, {e}")
                version = version or info.version
                loader = info.loader or loader
                bucket = info.bucket if entry.bucket == ContentBucket.MOD else entry.bucket
                metadata = {**info.metadata, **metadata}

        if not name or not filename:
            warnings.append(f"{entry.key}: manifest lacks file details, using placeholders")
            project = getattr(entry.source, "project_id", None) or entry.key
            name = name or f"{entry.source.kind} {project}"
            filename = filename or f"{entry.key}{_BUCKET_EXTENSIONS[bucket]}"

        return ModRecord(
            id=entry.key,
            source=entry.source,
            name=name,
            version=version,
            loader=loader,
            target_version=manifest.target_version,
            bucket=bucket,
            filename=filename,
            metadata=metadata,
        )

    def _find_conflict(
        self, entry: ManifestEntry, target: str | None
    ) -> ModRecord | None:
        identity = entry.source.identity
        if identity is None:
            return None
        candidates = [
            record
            for record in self.catalog.find_by_project(*identity)
            if record.id != entry.key
        ]
        if not candidates:
            return None
        if target is not None:
            definition = self.modpacks.get(target)
            if definition is not None:
                # Prefer the version the target modpack actually uses
                for record in candidates:
                    if record.id in definition.member_ids:
                        return record
        return candidates[0]

    async def begin(
        self,
        manifest: ImportManifest,
        target_modpack_id: str | None = None,
        mirror: bool = False,
    ) -> ImportOutcome | None:
        """
        Scan a manifest and import it unless it conflicts with the catalog.

        Args:
            manifest: Parsed manifest
            target_modpack_id: Existing modpack to import into; None creates one
            mirror: Also drop members the manifest does not list

        Returns:
            ImportOutcome, or None if ``target_modpack_id`` is unknown
        """
        if target_modpack_id is not None and self.modpacks.get(target_modpack_id) is None:
            return None

        pending = PendingImport(
            token_id=uuid.uuid4().hex,
            manifest=manifest,
            target_modpack_id=target_modpack_id,
            mirror=mirror,
        )

        # Later entries of one project supersede earlier ones once added
        last_of_project = {
            entry.source.identity: entry.key
            for entry in manifest.entries
            if entry.source.identity is not None
        }

        with LogContext(import_token=pending.token_id):
            for entry in manifest.entries:
                kept = last_of_project.get(entry.source.identity)
                if kept is not None and kept != entry.key:
                    pending.warnings.append(
                        f"{entry.key}: same project as {kept}, listed later; keeping {kept}"
                    )
                    continue
                existing = self.catalog.find_by_key(entry.source)
                if existing is not None:
                    pending.reused_ids.append(existing.id)
                    continue
                conflicting = self._find_conflict(entry, target_modpack_id)
                if conflicting is not None:
                    pending.conflicts.append(ImportConflict(incoming=entry, existing=conflicting))
                    continue
                pending.new_records.append(
                    await self._build_record(entry, manifest, pending.warnings)
                )

            logger.info(
                "Manifest scanned",
                manifest=manifest.name,
                entries=len(manifest.entries),
                reused=len(pending.reused_ids),
                new=len(pending.new_records),
                conflicts=len(pending.conflicts),
            )

            if pending.conflicts:
                self._store.save_pending(pending)
                self.collector.count_import(ImportStatus.CONFLICTED.value)
                return ImportOutcome(
                    status=ImportStatus.CONFLICTED,
                    conflicts=list(pending.conflicts),
                    token=pending,
                )

            result = await self._complete(pending, {})
            self.collector.count_import(ImportStatus.CLEAN.value)
            return ImportOutcome(status=ImportStatus.CLEAN, result=result)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def _is_expired(self, pending: PendingImport, now: datetime | None = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now - pending.created_at > timedelta(seconds=self.config.pending_ttl_seconds)

    async def resolve(
        self,
        token: str | PendingImport,
        resolutions: Mapping[str, ConflictResolution | str],
    ) -> ImportResult | None:
        """
        Finish a conflicted import.

        Args:
            token: Token id (or the PendingImport returned by ``begin``)
            resolutions: Decision per conflict, keyed by the incoming source key

        Returns:
            ImportResult, or None for an unknown, discarded or expired token

        Raises:
            ValidationError: If a conflict has no resolution
        """
        token_id = token if isinstance(token, str) else token.token_id
        pending = self._store.load_pending(token_id)
        if pending is None:
            return None
        if self._is_expired(pending):
            self._store.delete_pending(token_id)
            logger.info("Pending import expired", token=token_id)
            return None

        try:
            decisions = {key: ConflictResolution(value) for key, value in resolutions.items()}
        except ValueError as e:
            raise ValidationError(f"Unknown conflict resolution: {e}", original_error=e) from e
        unresolved = [c.key for c in pending.conflicts if c.key not in decisions]
        if unresolved:
            raise ValidationError(f"No resolution for conflicts: {', '.join(unresolved)}")

        with LogContext(import_token=token_id):
            result = await self._complete(pending, decisions)
        if result is not None:
            self._store.delete_pending(token_id)
            self.collector.count_import("resolved")
        return result

    async def _complete(
        self, pending: PendingImport, decisions: Mapping[str, ConflictResolution]
    ) -> ImportResult | None:
        manifest = pending.manifest
        created = False

        if pending.target_modpack_id is not None:
            definition = self.modpacks.get(pending.target_modpack_id)
            if definition is None:
                logger.warning("Import target vanished", modpack_id=pending.target_modpack_id)
                return None
        else:
            definition = self.modpacks.create(
                manifest.name,
                target_version=manifest.target_version,
                loader=manifest.loader,
                loader_version=manifest.loader_version,
                description=manifest.description,
                version=manifest.version,
            )
            created = True

        result = ImportResult(
            modpack_id=definition.id, created=created, warnings=list(pending.warnings)
        )
        key_to_id: dict[str, str] = {key: key for key in pending.reused_ids}
        result.reused = len(pending.reused_ids)

        to_register = list(pending.new_records)
        for conflict in pending.conflicts:
            if decisions[conflict.key] == ConflictResolution.USE_EXISTING:
                key_to_id[conflict.key] = conflict.existing.id
                result.kept_existing += 1
            else:
                to_register.append(
                    await self._build_record(conflict.incoming, manifest, result.warnings)
                )
                result.replaced += 1

        before = len(self.catalog)
        for record in self.catalog.upsert_many(to_register):
            key_to_id[record.id] = record.id
        result.registered = len(self.catalog) - before

        ordered = [key_to_id[e.key] for e in manifest.entries if e.key in key_to_id]
        wanted = set(ordered)

        if pending.mirror:
            for member_id in list(definition.member_ids):
                if member_id in wanted:
                    continue
                if self.modpacks.remove_member(definition.id, member_id):
                    result.removed += 1

        result.added = self.modpacks.add_members(definition.id, ordered)
        for entry in manifest.entries:
            mod_id = key_to_id.get(entry.key)
            if mod_id is None:
                continue
            if not entry.enabled:
                self.modpacks.set_enabled(definition.id, mod_id, False)
            elif pending.mirror:
                self.modpacks.set_enabled(definition.id, mod_id, True)

        message = f"Import from {manifest.name}"
        if created:
            snapshot = self.versions.initialize(definition.id, message)
        else:
            snapshot = self.versions.commit(definition.id, message)
        result.version_id = snapshot.id if snapshot else None

        logger.info(
            "Import complete",
            modpack_id=definition.id,
            created=created,
            added=result.added,
            removed=result.removed,
            registered=result.registered,
            version_id=result.version_id,
        )
        return result

    # ------------------------------------------------------------------
    # Token housekeeping
    # ------------------------------------------------------------------

    def pending(self) -> list[PendingImport]:
        return sorted(self._store.list_pending(), key=lambda p: p.created_at)

    def get_pending(self, token_id: str) -> PendingImport | None:
        return self._store.load_pending(token_id)

    def discard(self, token_id: str) -> bool:
        """Drop a pending import. Nothing it scanned was ever written."""
        discarded = self._store.delete_pending(token_id)
        if discarded:
            self.collector.count_import("discarded")
            logger.info("Pending import discarded", token=token_id)
        return discarded

    def purge_expired(self, now: datetime | None = None) -> int:
        """
        Drop tokens older than the configured TTL.

        Returns:
            Number of tokens removed
        """
        purged = 0
        for pending in self._store.list_pending():
            if self._is_expired(pending, now) and self._store.delete_pending(pending.token_id):
                purged += 1
        if purged:
            logger.info("Expired pending imports purged", purged=purged)
        return purged

    # ------------------------------------------------------------------
    # Local files
    # ------------------------------------------------------------------

    async def import_local_files(
        self,
        modpack_id: str,
        paths: Iterable[Path],
        bucket: ContentBucket | None = None,
    ) -> ImportResult | None:
        """
        Register files from disk as local records and add them to a modpack.

        Files are addressed by content hash, so importing the same bytes twice
        reuses the first record. A file in the disabled form (``x.jar.disabled``)
        is registered as ``x.jar`` and added disabled. Hidden files are skipped.
        The modpack is not committed.

        Returns:
            ImportResult, or None if the modpack is unknown
        """
        if self.modpacks.get(modpack_id) is None:
            return None

        result = ImportResult(modpack_id=modpack_id)
        ids: list[str] = []
        disabled: list[str] = []
        for path in paths:
            path = Path(path)
            filename, enabled = path.name, True
            if filename.endswith(DISABLED_SUFFIX):
                filename, enabled = filename[: -len(DISABLED_SUFFIX)], False
            try:
                check_filename(filename)
            except ValueError as e:
                result.warnings.append(f"{path.name}: skipped, {e}")
                continue

            try:
                data = await asyncio.to_thread(path.read_bytes)
            except OSError as e:
                result.warnings.append(f"{path}: {e}")
                continue

            source = LocalSource(sha256=hashlib.sha256(data).hexdigest(), path=str(path.resolve()))
            existing = self.catalog.find_by_key(source)
            if existing is not None:
                result.reused += 1
                ids.append(existing.id)
                if not enabled:
                    disabled.append(existing.id)
                continue

            identified = self.metadata.identify(data, filename) if self.metadata else None
            if identified is None:
                result.warnings.append(f"{filename}: not identified, using file name")
            record = ModRecord(
                source=source,
                id=source.key,
                name=identified.name if identified else Path(filename).stem,
                version=identified.version if identified else "",
                loader=identified.loader if identified else "",
                target_version=identified.target_version if identified else "",
                bucket=bucket or (identified.bucket if identified else ContentBucket.MOD),
                filename=filename,
                metadata=identified.metadata if identified else {},
            )
            self.catalog.upsert(record)
            result.registered += 1
            ids.append(record.id)
            if not enabled:
                disabled.append(record.id)

        result.added = self.modpacks.add_members(modpack_id, ids)
        for mod_id in disabled:
            self.modpacks.set_enabled(modpack_id, mod_id, False)
        logger.info(
            "Local files imported",
            modpack_id=modpack_id,
            registered=result.registered,
            reused=result.reused,
            added=result.added,
        )
        return result
