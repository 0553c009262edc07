"""Catalog store: the content-addressed table of ModRecords."""

from collections.abc import Iterable

import structlog

from ..models import ModRecord
from ..models.sources import CurseForgeSource, LocalSource, ModrinthSource
from ..persistence.documents import DocumentStore

logger = structlog.get_logger(__name__)


class CatalogStore:
    """
    Records keyed by their source key.

    Upserts never overwrite: the first record seen for a key is the one kept,
    so user-curated fields on an existing record survive re-imports.
    Deleting a record removes it from every modpack that references it.
    """

    def __init__(self, store: DocumentStore) -> None:
        self._store = store
        self._records: dict[str, ModRecord] = {}
        self.reload()

    def reload(self) -> None:
        """Re-read the catalog document."""
        self._records = {record.id: record for record in self._store.load_catalog()}
        logger.debug("Catalog loaded", records=len(self._records))

    def _persist(self) -> None:
        self._store.save_catalog(list(self._records.values()))

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, mod_id: object) -> bool:
        return mod_id in self._records

    def upsert(self, record: ModRecord) -> ModRecord:
        """
        Insert a record unless one with the same key exists.

        Returns:
            The stored record: the existing one, or ``record`` if it was new
        """
        existing = self._records.get(record.id)
        if existing is not None:
            return existing
        self._records[record.id] = record
        self._persist()
        logger.info("Record added", mod_id=record.id, name=record.name)
        return record

    def upsert_many(self, records: Iterable[ModRecord]) -> list[ModRecord]:
        """Batch upsert with a single write. Order of the input is kept."""
        stored: list[ModRecord] = []
        inserted = 0
        for record in records:
            existing = self._records.get(record.id)
            if existing is None:
                self._records[record.id] = record
                existing = record
                inserted += 1
            stored.append(existing)
        if inserted:
            self._persist()
            logger.info("Records added", inserted=inserted, reused=len(stored) - inserted)
        return stored

    def get(self, mod_id: str) -> ModRecord | None:
        return self._records.get(mod_id)

    def all(self) -> list[ModRecord]:
        return sorted(self._records.values(), key=lambda r: (r.name.lower(), r.id))

    def delete(self, mod_id: str) -> bool:
        """
        Remove a record and cascade the removal into every modpack.

        Returns:
            False if the record did not exist
        """
        return self.delete_many([mod_id]) == 1

    def delete_many(self, mod_ids: Iterable[str]) -> int:
        """
        Remove several records with one catalog write and one cascade pass.

        Returns:
            Number of records removed
        """
        removed = {mod_id for mod_id in mod_ids if self._records.pop(mod_id, None) is not None}
        if not removed:
            return 0
        self._persist()
        touched = self._cascade(removed)
        logger.info("Records deleted", removed=len(removed), modpacks_updated=touched)
        return len(removed)

    def _cascade(self, removed: set[str]) -> int:
        touched = 0
        for definition in self._store.load_modpacks():
            if not removed.intersection(definition.member_ids):
                continue
            definition.member_ids = [m for m in definition.member_ids if m not in removed]
            definition.disabled_ids = [m for m in definition.disabled_ids if m not in removed]
            definition.touch()
            self._store.save_modpack(definition)
            touched += 1
        return touched

    def find_by_project(self, kind: str, project_id: int | str) -> list[ModRecord]:
        """Every record for one upstream project, any file."""
        wanted = (kind, str(project_id))
        return [record for record in self._records.values() if record.identity == wanted]

    def find_by_key(
        self, source: CurseForgeSource | ModrinthSource | LocalSource
    ) -> ModRecord | None:
        return self._records.get(source.key)
