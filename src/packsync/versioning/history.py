"""Version control over modpack membership.

Each modpack owns a strictly linear chain of snapshots (``v1``, ``v2``, ...).
A snapshot stores the full member list and disabled overlay; its ``changes``
are always derived by diffing against the parent and never edited.

State per modpack:
-----------------
    Uninitialized --initialize/commit--> HasHistory

Rules:
-----
- A commit with no change against the head returns the head unchanged.
- Rollback restores an old snapshot's state into the live definition and
  records that as a new commit. History is only ever extended.
- Unknown modpack or version ids return None/False.
"""

import re
from collections.abc import Callable, Iterable

import structlog

from ..library.catalog import CatalogStore
from ..library.modpacks import ModpackStore
from ..models import (
    Change,
    ChangeKind,
    ModpackDefinition,
    RollbackCheck,
    VersionHistory,
    VersionSnapshot,
)
from ..persistence.documents import DocumentStore

logger = structlog.get_logger(__name__)

DEFAULT_TAG = "1.0.0"

_SEMVER_PREFIX = re.compile(r"^(\d+)\.(\d+)\.(\d+)")


def next_tag(tag: str) -> str:
    """
    Bump the patch number of a semantic version tag.

    Anything after the patch number (``-rollback``, ``-beta``) is dropped.
    Tags without a ``X.Y.Z`` prefix get ``.1`` appended.

    >>> next_tag("1.2.3")
    '1.2.4'
    >>> next_tag("1.2.3-rollback")
    '1.2.4'
    >>> next_tag("alpha")
    'alpha.1'
    """
    match = _SEMVER_PREFIX.match(tag)
    if match is None:
        return f"{tag}.1"
    major, minor, patch = match.groups()
    return f"{major}.{minor}.{int(patch) + 1}"


def compute_changes(
    old_members: Iterable[str],
    old_disabled: Iterable[str],
    new_members: Iterable[str],
    new_disabled: Iterable[str],
    name_of: Callable[[str], str | None] = lambda _: None,
) -> list[Change]:
    """
    Membership and overlay delta between two states.

    Adds and removes come from the member lists; enables and disables from
    the overlay. A member added in a disabled state yields both ``add`` and
    ``disable``. A member removed while disabled yields only ``remove``.
    """
    old_members = list(old_members)
    new_members = list(new_members)
    old_set, new_set = set(old_members), set(new_members)
    old_off, new_off = set(old_disabled), set(new_disabled)

    changes: list[Change] = []
    for mod_id in new_members:
        if mod_id not in old_set:
            changes.append(Change(kind=ChangeKind.ADD, mod_id=mod_id, mod_name=name_of(mod_id)))
    for mod_id in old_members:
        if mod_id not in new_set:
            changes.append(Change(kind=ChangeKind.REMOVE, mod_id=mod_id, mod_name=name_of(mod_id)))
    for mod_id in new_members:
        if mod_id in new_off and mod_id not in old_off:
            changes.append(Change(kind=ChangeKind.DISABLE, mod_id=mod_id, mod_name=name_of(mod_id)))
        elif mod_id in old_off and mod_id not in new_off and mod_id in old_set:
            changes.append(Change(kind=ChangeKind.ENABLE, mod_id=mod_id, mod_name=name_of(mod_id)))
    return changes


class VersionControl:
    """Linear commit history for every modpack."""

    def __init__(self, store: DocumentStore, modpacks: ModpackStore, catalog: CatalogStore) -> None:
        self._store = store
        self._modpacks = modpacks
        self._catalog = catalog

    def _name_of(self, mod_id: str) -> str | None:
        record = self._catalog.get(mod_id)
        return record.name if record else None

    def _snapshot(
        self,
        definition: ModpackDefinition,
        version_id: str,
        parent_id: str | None,
        tag: str,
        message: str,
        changes: list[Change],
    ) -> VersionSnapshot:
        return VersionSnapshot(
            id=version_id,
            parent_id=parent_id,
            tag=tag,
            message=message,
            member_ids=list(definition.member_ids),
            disabled_ids=list(definition.disabled_ids),
            loader=definition.loader,
            target_version=definition.target_version,
            changes=changes,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def history(self, modpack_id: str) -> VersionHistory | None:
        return self._store.load_history(modpack_id)

    def head(self, modpack_id: str) -> VersionSnapshot | None:
        history = self.history(modpack_id)
        return history.head if history else None

    def get_version(self, modpack_id: str, version_id: str) -> VersionSnapshot | None:
        history = self.history(modpack_id)
        return history.find(version_id) if history else None

    def diff(self, modpack_id: str, from_id: str, to_id: str) -> list[Change] | None:
        """
        Recompute the changes between two snapshots.

        Returns:
            Changes needed to go from ``from_id`` to ``to_id``, or None if
            either snapshot is unknown
        """
        history = self.history(modpack_id)
        if history is None:
            return None
        old, new = history.find(from_id), history.find(to_id)
        if old is None or new is None:
            return None
        return compute_changes(
            old.member_ids, old.disabled_ids, new.member_ids, new.disabled_ids, self._name_of
        )

    def pending_changes(self, modpack_id: str) -> list[Change] | None:
        """Uncommitted changes of the live definition against the head."""
        definition = self._modpacks.get(modpack_id)
        if definition is None:
            return None
        head = self.head(modpack_id)
        if head is None:
            return compute_changes(
                [], [], definition.member_ids, definition.disabled_ids, self._name_of
            )
        return compute_changes(
            head.member_ids,
            head.disabled_ids,
            definition.member_ids,
            definition.disabled_ids,
            self._name_of,
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def initialize(
        self, modpack_id: str, message: str = "Initial version"
    ) -> VersionSnapshot | None:
        """
        Record the first snapshot of a modpack.

        Returns the existing head untouched when history already exists.
        """
        definition = self._modpacks.get(modpack_id)
        if definition is None:
            return None

        history = self.history(modpack_id)
        if history is not None and history.head is not None:
            return history.head

        snapshot = self._snapshot(
            definition,
            version_id="v1",
            parent_id=None,
            tag=definition.version or DEFAULT_TAG,
            message=message,
            changes=[],
        )
        self._store.save_history(
            VersionHistory(modpack_id=modpack_id, head_id=snapshot.id, versions=[snapshot])
        )
        logger.info("Version history initialized", modpack_id=modpack_id, tag=snapshot.tag)
        return snapshot

    def commit(
        self, modpack_id: str, message: str, tag: str | None = None
    ) -> VersionSnapshot | None:
        """
        Snapshot the live membership if it differs from the head.

        Args:
            modpack_id: Modpack to commit
            message: Commit message
            tag: Explicit tag; defaults to the head's tag with the patch bumped

        Returns:
            The new snapshot, the unchanged head when there is nothing to
            commit, or None for an unknown modpack
        """
        head = self.initialize(modpack_id)
        if head is None:
            return None

        definition = self._modpacks.get(modpack_id)
        history = self.history(modpack_id)
        if definition is None or history is None:
            return None

        changes = compute_changes(
            head.member_ids,
            head.disabled_ids,
            definition.member_ids,
            definition.disabled_ids,
            self._name_of,
        )
        if not changes:
            logger.debug("Nothing to commit", modpack_id=modpack_id, head=head.id)
            return head

        snapshot = self._snapshot(
            definition,
            version_id=f"v{len(history.versions) + 1}",
            parent_id=head.id,
            tag=tag or next_tag(head.tag),
            message=message,
            changes=changes,
        )
        history.versions.append(snapshot)
        history.head_id = snapshot.id
        self._store.save_history(history)
        self._modpacks.update_fields(modpack_id, version=snapshot.tag)

        logger.info(
            "Version committed",
            modpack_id=modpack_id,
            version_id=snapshot.id,
            tag=snapshot.tag,
            changes=len(changes),
        )
        return snapshot

    def validate_rollback(self, modpack_id: str, version_id: str) -> RollbackCheck | None:
        """Split a snapshot's members into still-available and missing ids."""
        snapshot = self.get_version(modpack_id, version_id)
        if snapshot is None:
            return None
        check = RollbackCheck(version_id=version_id)
        for mod_id in snapshot.member_ids:
            if mod_id in self._catalog:
                check.available.append(mod_id)
            else:
                check.missing.append(mod_id)
        return check

    def rollback(
        self,
        modpack_id: str,
        version_id: str,
        available_mod_ids: Iterable[str] | None = None,
    ) -> bool:
        """
        Restore a snapshot's membership as a new commit.

        Args:
            modpack_id: Modpack to roll back
            version_id: Snapshot to restore
            available_mod_ids: When given, only these ids are restored
                (partial rollback); the overlay is filtered to match

        Returns:
            False if the modpack or snapshot is unknown
        """
        definition = self._modpacks.get(modpack_id)
        snapshot = self.get_version(modpack_id, version_id)
        if definition is None or snapshot is None:
            return False

        members = list(snapshot.member_ids)
        if available_mod_ids is not None:
            available = set(available_mod_ids)
            members = [m for m in members if m in available]
        kept = set(members)
        disabled = [m for m in snapshot.disabled_ids if m in kept]

        definition.member_ids = members
        definition.disabled_ids = disabled
        definition.loader = snapshot.loader or definition.loader
        definition.target_version = snapshot.target_version or definition.target_version
        definition.touch()
        self._store.save_modpack(definition)

        total = len(snapshot.member_ids)
        if len(members) < total:
            message = f"Partial rollback to {snapshot.tag} ({len(members)}/{total} mods)"
        else:
            message = f"Rollback to {snapshot.tag}"

        result = self.commit(modpack_id, message, tag=f"{snapshot.tag}-rollback")
        logger.info(
            "Rolled back",
            modpack_id=modpack_id,
            target=version_id,
            restored=len(members),
            total=total,
            new_head=result.id if result else None,
        )
        return True

    def delete_history(self, modpack_id: str) -> bool:
        return self._store.delete_history(modpack_id)
