"""Reconciliation planner - compare a modpack's membership with an instance.

Decision matrix per file (bucket + enabled-form filename):

    member, absent in both forms        -> missing (fetch into the wanted form)
    member, present in the wrong form   -> toggle (rename)
    member, present in the right form   -> nothing
    not a member, clear_existing        -> obsolete (delete)
    not a member, otherwise             -> untracked (left alone, reported)

The planner is a pure function of its inputs and never touches the disk.
"""

from collections.abc import Iterable, Mapping

import structlog

from ..models import (
    InstanceFile,
    InstanceState,
    MemberRef,
    ModpackDefinition,
    ModRecord,
    ReconciliationPlan,
    SyncStatus,
    ToggleItem,
)

logger = structlog.get_logger(__name__)


def _index(records: Mapping[str, ModRecord] | Iterable[ModRecord]) -> Mapping[str, ModRecord]:
    if isinstance(records, Mapping):
        return records
    return {record.id: record for record in records}


def plan(
    definition: ModpackDefinition,
    records: Mapping[str, ModRecord] | Iterable[ModRecord],
    state: InstanceState,
    clear_existing: bool = False,
) -> ReconciliationPlan:
    """
    Compute the delta that brings an instance in line with a modpack.

    Args:
        definition: Target membership and overlay
        records: Catalog records for the members (mapping by id or iterable)
        state: Fresh probe of the instance
        clear_existing: Plan deletion of every file no member accounts for

    Returns:
        ReconciliationPlan
    """
    by_id = _index(records)
    disabled = set(definition.disabled_ids)
    result = ReconciliationPlan(clear_existing=clear_existing)
    tracked: set[tuple[str, str]] = set()

    for mod_id in definition.member_ids:
        record = by_id.get(mod_id)
        if record is None:
            logger.warning("Member has no catalog record", modpack_id=definition.id, mod_id=mod_id)
            continue

        slot = (record.bucket.value, record.filename)
        if slot in tracked:
            logger.warning(
                "Two members share a file name",
                modpack_id=definition.id,
                mod_id=mod_id,
                filename=record.filename,
            )
            continue
        tracked.add(slot)

        want_enabled = mod_id not in disabled
        present = state.lookup(record.bucket, record.filename)
        if present is None:
            result.missing.append(MemberRef(record, want_enabled))
        elif present != want_enabled:
            result.toggle.append(
                ToggleItem(
                    file=InstanceFile(record.bucket, record.filename, present),
                    want_enabled=want_enabled,
                    mod_id=mod_id,
                )
            )

    for file in state.iter_files():
        if (file.bucket.value, file.filename) in tracked:
            continue
        if clear_existing:
            result.obsolete.append(file)
        else:
            result.untracked.append(file)

    logger.debug("Plan computed", modpack_id=definition.id, **result.get_summary())
    return result


def sync_status(
    definition: ModpackDefinition,
    records: Mapping[str, ModRecord] | Iterable[ModRecord],
    state: InstanceState,
) -> SyncStatus:
    """Counts of missing members, untracked files and overlay mismatches."""
    delta = plan(definition, records, state)
    return SyncStatus(
        missing=len(delta.missing),
        extra=len(delta.untracked),
        toggle=len(delta.toggle),
    )
