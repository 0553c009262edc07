"""Discovery and application of newer compatible files for modpack members."""

import asyncio
from dataclasses import dataclass

import structlog

from ..models import ModRecord
from ..resolvers.base import ContentResolver, RemoteFile
from ..versioning.history import VersionControl
from .catalog import CatalogStore
from .modpacks import ModpackStore

logger = structlog.get_logger(__name__)


@dataclass
class UpdateCandidate:
    """A member with a newer file available upstream."""

    mod_id: str
    name: str
    current_version: str
    latest: RemoteFile

    @property
    def new_id(self) -> str:
        return self.latest.source.key


class UpdateFinder:
    """Finds and applies updates through a content resolver."""

    def __init__(
        self,
        catalog: CatalogStore,
        modpacks: ModpackStore,
        versions: VersionControl,
        resolver: ContentResolver,
        concurrency: int = 10,
    ) -> None:
        self.catalog = catalog
        self.modpacks = modpacks
        self.versions = versions
        self.resolver = resolver
        self.concurrency = concurrency

    async def _check_one(
        self, record: ModRecord, target_version: str, loader: str
    ) -> UpdateCandidate | None:
        kind, project_id = record.identity  # type: ignore[misc]
        latest = await self.resolver.find_compatible_file(kind, project_id, target_version, loader)
        if latest is None or latest.source.key == record.id:
            return None
        return UpdateCandidate(
            mod_id=record.id,
            name=record.name,
            current_version=record.version,
            latest=latest,
        )

    async def check(self, modpack_id: str) -> list[UpdateCandidate]:
        """
        Ask the resolver for the newest compatible file of every catalog-sourced member.

        Local members are skipped. A lookup failure for one member is logged
        and does not stop the others.
        """
        definition = self.modpacks.get(modpack_id)
        if definition is None:
            return []
        records = [r for r in self.modpacks.members(modpack_id) if r.identity is not None]

        candidates: list[UpdateCandidate] = []
        for start in range(0, len(records), self.concurrency):
            batch = records[start : start + self.concurrency]
            outcomes = await asyncio.gather(
                *(
                    self._check_one(r, definition.target_version, definition.loader)
                    for r in batch
                ),
                return_exceptions=True,
            )
            for record, outcome in zip(batch, outcomes, strict=True):
                if isinstance(outcome, Exception):
                    logger.warning("Update lookup failed", mod_id=record.id, error=str(outcome))
                elif isinstance(outcome, BaseException):
                    raise outcome
                elif outcome is not None:
                    candidates.append(outcome)

        logger.info("Update check complete", modpack_id=modpack_id, updates=len(candidates))
        return candidates

    def apply(self, modpack_id: str, candidates: list[UpdateCandidate]) -> int:
        """
        Register the candidates' files and swap them in.

        Each new record replaces its predecessor in place, keeping its
        position and disabled state. One commit covers the whole batch.

        Returns:
            Number of members updated
        """
        definition = self.modpacks.get(modpack_id)
        if definition is None or not candidates:
            return 0

        records = [
            ModRecord(
                source=c.latest.source,
                name=c.latest.name or c.name,
                version=c.latest.version,
                loader=c.latest.loader or definition.loader,
                target_version=definition.target_version,
                bucket=c.latest.bucket,
                filename=c.latest.filename,
                metadata=c.latest.metadata,
            )
            for c in candidates
        ]
        self.catalog.upsert_many(records)

        updated = 0
        for candidate in candidates:
            if self.modpacks.replace_member(modpack_id, candidate.mod_id, candidate.new_id):
                updated += 1

        if updated:
            self.versions.commit(modpack_id, f"Update {updated} mods")
        logger.info("Updates applied", modpack_id=modpack_id, updated=updated)
        return updated
