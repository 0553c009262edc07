"""Modpack store: definitions, membership and the enabled/disabled overlay.

Membership Rules:
----------------
1. Adding an existing member is a no-op that succeeds.
2. Adding a record supersedes every member from the same upstream project
   (same source kind and project id, different file). Superseded members
   leave both the member list and the disabled overlay.
3. A newly added member is always enabled, even when it superseded a
   disabled one. ``replace_member`` is the explicit update path that keeps
   the old member's disabled state.
4. ``disabled_ids`` is a subset of ``member_ids`` after every call.

Unknown modpack or mod ids are reported through the return value
(False, None or 0), never raised.
"""

import re
import uuid
from collections.abc import Iterable
from typing import Any

import structlog

from ..models import ModpackDefinition, ModRecord, RemoteSource
from ..models.records import utcnow
from ..persistence.documents import DocumentStore
from .catalog import CatalogStore

logger = structlog.get_logger(__name__)

UPDATABLE_FIELDS = frozenset(
    {
        "name",
        "version",
        "description",
        "target_version",
        "loader",
        "loader_version",
        "remote_source",
    }
)


def slugify(name: str, max_length: int = 40) -> str:
    """Lowercase, hyphen-separated, filesystem-safe form of a name."""
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug[:max_length].rstrip("-") or "modpack"


class ModpackStore:
    """CRUD and membership operations over ModpackDefinitions."""

    def __init__(self, store: DocumentStore, catalog: CatalogStore) -> None:
        self._store = store
        self._catalog = catalog

    def _save(self, definition: ModpackDefinition) -> None:
        definition.touch()
        self._store.save_modpack(definition)

    # ------------------------------------------------------------------
    # Definitions
    # ------------------------------------------------------------------

    def create(
        self,
        name: str,
        target_version: str = "",
        loader: str = "",
        loader_version: str | None = None,
        description: str = "",
        version: str = "1.0.0",
        remote_url: str | None = None,
    ) -> ModpackDefinition:
        """Create an empty modpack with a fresh id."""
        definition = ModpackDefinition(
            id=f"{slugify(name)}-{uuid.uuid4().hex[:6]}",
            name=name,
            version=version,
            target_version=target_version,
            loader=loader,
            loader_version=loader_version,
            description=description,
            remote_source=RemoteSource(url=remote_url) if remote_url else None,
        )
        self._store.save_modpack(definition)
        logger.info("Modpack created", modpack_id=definition.id, name=name)
        return definition

    def get(self, modpack_id: str) -> ModpackDefinition | None:
        return self._store.load_modpack(modpack_id)

    def all(self) -> list[ModpackDefinition]:
        return sorted(self._store.load_modpacks(), key=lambda d: (d.name.lower(), d.id))

    def update_fields(self, modpack_id: str, **fields: Any) -> bool:
        """
        Update descriptive fields of a modpack.

        Membership cannot be changed here; use the membership operations.

        Raises:
            ValueError: If a field is not updatable
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be updated directly: {', '.join(sorted(unknown))}")

        definition = self.get(modpack_id)
        if definition is None:
            return False

        if isinstance(fields.get("remote_source"), dict):
            fields["remote_source"] = RemoteSource.model_validate(fields["remote_source"])
        for name, value in fields.items():
            setattr(definition, name, value)
        self._save(definition)
        logger.debug("Modpack updated", modpack_id=modpack_id, fields=sorted(fields))
        return True

    def delete(self, modpack_id: str) -> bool:
        """Delete a modpack together with its version history."""
        if not self._store.delete_modpack(modpack_id):
            return False
        self._store.delete_history(modpack_id)
        logger.info("Modpack deleted", modpack_id=modpack_id)
        return True

    def clone(self, modpack_id: str, new_name: str) -> ModpackDefinition | None:
        """
        Copy a modpack's membership and overlay into a new modpack.

        The clone starts without history or remote source.
        """
        source = self.get(modpack_id)
        if source is None:
            return None
        clone = self.create(
            new_name,
            target_version=source.target_version,
            loader=source.loader,
            loader_version=source.loader_version,
            description=source.description,
        )
        clone.member_ids = list(source.member_ids)
        clone.disabled_ids = list(source.disabled_ids)
        self._save(clone)
        logger.info("Modpack cloned", source_id=modpack_id, modpack_id=clone.id)
        return clone

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def _apply_add(self, definition: ModpackDefinition, record: ModRecord) -> bool:
        """Add one record in place. Returns True if membership changed."""
        if record.id in definition.member_ids:
            return False

        if record.identity is not None:
            superseded = []
            for member_id in definition.member_ids:
                if member_id == record.id:
                    continue
                member = self._catalog.get(member_id)
                if member is not None and member.identity == record.identity:
                    superseded.append(member_id)
            if superseded:
                definition.member_ids = [m for m in definition.member_ids if m not in superseded]
                definition.disabled_ids = [
                    m for m in definition.disabled_ids if m not in superseded
                ]
                logger.info(
                    "Members superseded",
                    modpack_id=definition.id,
                    mod_id=record.id,
                    superseded=superseded,
                )

        definition.member_ids.append(record.id)
        return True

    def add_member(self, modpack_id: str, mod_id: str) -> bool:
        """
        Add a catalog record to a modpack.

        Returns:
            True if the record is a member afterwards; False if the modpack
            or the record does not exist
        """
        definition = self.get(modpack_id)
        record = self._catalog.get(mod_id)
        if definition is None or record is None:
            return False
        if self._apply_add(definition, record):
            self._save(definition)
            logger.debug("Member added", modpack_id=modpack_id, mod_id=mod_id)
        return True

    def add_members(self, modpack_id: str, mod_ids: Iterable[str]) -> int:
        """
        Add several records with a single write.

        Returns:
            Number of records that became new members
        """
        definition = self.get(modpack_id)
        if definition is None:
            return 0
        added = 0
        for mod_id in mod_ids:
            record = self._catalog.get(mod_id)
            if record is None:
                logger.warning("Unknown mod id skipped", modpack_id=modpack_id, mod_id=mod_id)
                continue
            if self._apply_add(definition, record):
                added += 1
        if added:
            self._save(definition)
            logger.info("Members added", modpack_id=modpack_id, added=added)
        return added

    def remove_member(self, modpack_id: str, mod_id: str) -> bool:
        definition = self.get(modpack_id)
        if definition is None or mod_id not in definition.member_ids:
            return False
        definition.member_ids.remove(mod_id)
        if mod_id in definition.disabled_ids:
            definition.disabled_ids.remove(mod_id)
        self._save(definition)
        logger.debug("Member removed", modpack_id=modpack_id, mod_id=mod_id)
        return True

    def set_enabled(self, modpack_id: str, mod_id: str, enabled: bool) -> bool:
        """
        Move a member into or out of the disabled overlay.

        Returns:
            False if the modpack does not exist or the mod is not a member
        """
        definition = self.get(modpack_id)
        if definition is None or mod_id not in definition.member_ids:
            return False
        currently_enabled = mod_id not in definition.disabled_ids
        if currently_enabled == enabled:
            return True
        if enabled:
            definition.disabled_ids.remove(mod_id)
        else:
            definition.disabled_ids.append(mod_id)
        self._save(definition)
        logger.debug("Member toggled", modpack_id=modpack_id, mod_id=mod_id, enabled=enabled)
        return True

    def toggle(self, modpack_id: str, mod_id: str) -> bool | None:
        """
        Flip a member's enabled state.

        Returns:
            The new enabled state, or None if the modpack or member is unknown
        """
        definition = self.get(modpack_id)
        if definition is None or mod_id not in definition.member_ids:
            return None
        enabled = mod_id in definition.disabled_ids
        self.set_enabled(modpack_id, mod_id, enabled)
        return enabled

    def replace_member(self, modpack_id: str, old_id: str, new_id: str) -> bool:
        """
        Swap one member for another in place, keeping its position and
        disabled state. Used by update flows.
        """
        definition = self.get(modpack_id)
        if (
            definition is None
            or old_id not in definition.member_ids
            or self._catalog.get(new_id) is None
        ):
            return False
        if old_id == new_id:
            return True

        was_disabled = old_id in definition.disabled_ids
        members = [m for m in definition.member_ids if m != new_id]
        position = members.index(old_id)
        members[position] = new_id
        definition.member_ids = members
        definition.disabled_ids = [m for m in definition.disabled_ids if m not in (old_id, new_id)]
        if was_disabled:
            definition.disabled_ids.append(new_id)
        self._save(definition)
        logger.info("Member replaced", modpack_id=modpack_id, old_id=old_id, new_id=new_id)
        return True

    def members(self, modpack_id: str) -> list[ModRecord]:
        """Resolved member records, in membership order. Dangling ids are skipped."""
        definition = self.get(modpack_id)
        if definition is None:
            return []
        records = []
        for mod_id in definition.member_ids:
            record = self._catalog.get(mod_id)
            if record is not None:
                records.append(record)
        return records

    def mark_checked(self, modpack_id: str) -> bool:
        """Stamp the remote source's last_checked time."""
        definition = self.get(modpack_id)
        if definition is None or definition.remote_source is None:
            return False
        definition.remote_source.last_checked = utcnow()
        self._store.save_modpack(definition)
        return True
