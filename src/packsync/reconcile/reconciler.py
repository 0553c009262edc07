"""High-level sync: load, probe, plan, apply and journal in one call."""

import asyncio
import uuid
from datetime import datetime, timezone
from pathlib import Path

import structlog

from ..config import SyncPolicy
from ..library.catalog import CatalogStore
from ..library.modpacks import ModpackStore
from ..models import (
    ActionStatus,
    ApplyResult,
    ModpackDefinition,
    ModRecord,
    ReconciliationPlan,
    SyncStatus,
)
from ..observability.logger import LogContext
from ..persistence.journal import ApplyJournal
from ..resolvers.base import ContentResolver
from ..utils.exceptions import InstanceUnavailableError
from ..versioning.history import VersionControl
from .applier import ApplyOptions, PlanApplier, ProgressCallback
from .instance import InstanceTarget, probe_instance
from .planner import plan as compute_plan
from .planner import sync_status

logger = structlog.get_logger(__name__)


class Reconciler:
    """
    Keeps instances converged with modpacks.

    Wires the stores, a content resolver and an optional apply journal
    together. Every action of a ``sync`` is written to the journal under one
    session id.
    """

    def __init__(
        self,
        catalog: CatalogStore,
        modpacks: ModpackStore,
        resolver: ContentResolver,
        policy: SyncPolicy | None = None,
        journal: ApplyJournal | None = None,
        versions: VersionControl | None = None,
    ) -> None:
        self.catalog = catalog
        self.modpacks = modpacks
        self.resolver = resolver
        self.policy = policy or SyncPolicy()
        self.journal = journal
        self.versions = versions

    def _target(self, instance: InstanceTarget | Path | str) -> InstanceTarget:
        if isinstance(instance, InstanceTarget):
            return instance
        return InstanceTarget(Path(instance), disabled_suffix=self.policy.disabled_suffix)

    def _definition(self, modpack_id: str, version_id: str | None) -> ModpackDefinition | None:
        """Live definition, or a view of it at an older snapshot."""
        definition = self.modpacks.get(modpack_id)
        if definition is None or version_id is None:
            return definition
        if self.versions is None:
            raise ValueError("Syncing a snapshot needs a VersionControl")
        snapshot = self.versions.get_version(modpack_id, version_id)
        if snapshot is None:
            return None
        return definition.model_copy(
            update={
                "member_ids": list(snapshot.member_ids),
                "disabled_ids": list(snapshot.disabled_ids),
            }
        )

    def plan(
        self,
        modpack_id: str,
        instance: InstanceTarget | Path | str,
        clear_existing: bool | None = None,
        version_id: str | None = None,
    ) -> ReconciliationPlan | None:
        """
        Plan a sync without touching the instance.

        Raises:
            InstanceUnavailableError: If the instance directory is missing
        """
        definition = self._definition(modpack_id, version_id)
        if definition is None:
            return None
        state = probe_instance(self._target(instance))
        clear = self.policy.clear_existing if clear_existing is None else clear_existing
        return compute_plan(definition, self._records(definition), state, clear_existing=clear)

    def status(self, modpack_id: str, instance: InstanceTarget | Path | str) -> SyncStatus | None:
        definition = self.modpacks.get(modpack_id)
        if definition is None:
            return None
        state = probe_instance(self._target(instance))
        return sync_status(definition, self._records(definition), state)

    def _records(self, definition: ModpackDefinition) -> dict[str, ModRecord]:
        records = {}
        for mod_id in definition.member_ids:
            record = self.catalog.get(mod_id)
            if record is not None:
                records[mod_id] = record
        return records

    async def sync(
        self,
        modpack_id: str,
        instance: InstanceTarget | Path | str,
        clear_existing: bool | None = None,
        overrides_dir: Path | None = None,
        version_id: str | None = None,
        progress: ProgressCallback | None = None,
        cancel: asyncio.Event | None = None,
    ) -> ApplyResult | None:
        """
        Converge an instance with a modpack (or one of its snapshots).

        Returns:
            ApplyResult, or None if the modpack or snapshot is unknown.
            An unusable instance yields a result with ``success=False``.
        """
        target = self._target(instance)
        session_id = uuid.uuid4().hex[:12]

        with LogContext(modpack_id=modpack_id, session_id=session_id):
            try:
                delta = self.plan(modpack_id, target, clear_existing, version_id)
            except InstanceUnavailableError as e:
                logger.error("Instance unavailable", path=str(target.path), reason=e.reason)
                now = datetime.now(timezone.utc)
                return ApplyResult(success=False, errors=[str(e)], started_at=now, completed_at=now)
            if delta is None:
                return None

            options = ApplyOptions(
                concurrency=self.policy.concurrency,
                config_mode=self.policy.config_sync_mode,
                overrides_dir=overrides_dir,
                progress=progress,
                cancel=cancel,
            )
            result = await PlanApplier(self.resolver, target, options).apply(delta)

            if self.journal is not None:
                for action in result.actions:
                    self.journal.record_action(
                        session_id=session_id,
                        modpack_id=modpack_id,
                        instance_path=str(target.path),
                        action=action.action.value,
                        bucket=action.bucket,
                        target=action.target,
                        success=action.status != ActionStatus.FAILED,
                        mod_id=action.mod_id,
                        error_message=action.error_message,
                        details={"status": action.status.value, "duration_ms": action.duration_ms},
                    )

            logger.info(
                "Sync finished",
                success=result.success,
                fetched=result.fetched,
                errors=len(result.errors),
            )
            return result
