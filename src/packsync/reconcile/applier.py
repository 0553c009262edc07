"""Plan applier - realise a reconciliation plan against an instance.

Execution Strategy:
1. Fetch missing members in sequential batches of ``concurrency`` items.
   Items within a batch run in parallel through ``asyncio.gather``; one
   failing fetch never aborts its batch.
2. Rename toggled files between ``name`` and ``name<disabled suffix>``.
3. Delete obsolete files, only for plans computed with ``clear_existing``.
4. Sync config overrides under the selected mode.

The only structural failure is an unusable instance directory: it sets
``ApplyResult.success`` to False and nothing is attempted. Every other
failure is recorded per item and the run carries on.
"""

import asyncio
import os
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

import structlog

from ..config import ConfigSyncMode
from ..models import (
    ActionResult,
    ActionStatus,
    ActionType,
    ApplyResult,
    InstanceFile,
    MemberRef,
    ReconciliationPlan,
    ToggleItem,
)
from ..observability.metrics import MetricsCollector, get_global_collector
from ..resolvers.base import ContentResolver
from ..utils.exceptions import InstanceUnavailableError
from .configs import sync_overrides
from .instance import InstanceTarget, as_target

logger = structlog.get_logger(__name__)

DEFAULT_CONCURRENCY = 20

ProgressCallback = Callable[[int, int], None]


@dataclass
class ApplyOptions:
    """
    Knobs for one apply run.

    Attributes:
        concurrency: Fetches per batch
        config_mode: How override files are written
        overrides_dir: Directory of override files; None skips config sync
        progress: Called with (completed, total) after every fetch
        cancel: When set, no further fetch batch is started
    """

    concurrency: int = DEFAULT_CONCURRENCY
    config_mode: ConfigSyncMode = ConfigSyncMode.OVERWRITE
    overrides_dir: Path | None = None
    progress: ProgressCallback | None = None
    cancel: asyncio.Event | None = None


def _write_atomic(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.part")
    try:
        tmp_path.write_bytes(data)
        os.replace(tmp_path, path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise


class PlanApplier:
    """Apply reconciliation plans with bounded concurrency."""

    def __init__(
        self,
        resolver: ContentResolver,
        instance: InstanceTarget | Path | str,
        options: ApplyOptions | None = None,
        collector: MetricsCollector | None = None,
    ) -> None:
        self.resolver = resolver
        self.instance = as_target(instance)
        self.options = options or ApplyOptions()
        if self.options.concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.collector = collector or get_global_collector()
        self._completed = 0
        self._total = 0

    async def apply(self, plan: ReconciliationPlan) -> ApplyResult:
        """
        Apply a plan.

        Args:
            plan: Plan computed against a fresh probe of this instance

        Returns:
            ApplyResult with counts, per-action results, warnings and errors
        """
        result = ApplyResult(started_at=datetime.now(timezone.utc))

        try:
            self.instance.ensure_available()
        except InstanceUnavailableError as e:
            logger.error("Instance unavailable", path=str(self.instance.path), reason=e.reason)
            result.success = False
            result.errors.append(str(e))
            result.completed_at = datetime.now(timezone.utc)
            return result

        logger.info(
            "Starting plan apply",
            instance=str(self.instance.path),
            missing=len(plan.missing),
            toggle=len(plan.toggle),
            obsolete=len(plan.obsolete) if plan.clear_existing else 0,
            concurrency=self.options.concurrency,
        )

        await self._fetch_missing(plan.missing, result)
        if result.cancelled:
            result.completed_at = datetime.now(timezone.utc)
            return result

        for item in plan.toggle:
            self._record(result, self._toggle(item))

        if plan.clear_existing:
            for file in plan.obsolete:
                self._record(result, self._remove(file))
        elif plan.obsolete:
            result.warnings.append(
                f"{len(plan.obsolete)} obsolete files kept: "
                "plan was not computed with clear_existing"
            )

        if self.options.overrides_dir is not None:
            configs = await asyncio.to_thread(
                sync_overrides,
                self.options.overrides_dir,
                self.instance.path,
                self.options.config_mode,
            )
            result.configs_copied += configs.copied
            result.configs_skipped += configs.skipped
            result.warnings.extend(configs.warnings)
            result.actions.extend(configs.actions)

        result.completed_at = datetime.now(timezone.utc)
        logger.info("Plan apply complete", **result.get_summary())
        return result

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    async def _fetch_missing(self, missing: list[MemberRef], result: ApplyResult) -> None:
        self._completed = 0
        self._total = len(missing)
        size = self.options.concurrency
        batches = [missing[i : i + size] for i in range(0, len(missing), size)]

        for number, batch in enumerate(batches, start=1):
            if self.options.cancel is not None and self.options.cancel.is_set():
                remaining = sum(len(b) for b in batches[number - 1 :])
                result.cancelled = True
                result.warnings.append(f"Cancelled before fetching {remaining} items")
                logger.warning("Apply cancelled", remaining=remaining)
                return

            logger.debug(
                "Fetching batch", batch_number=number, total_batches=len(batches), items=len(batch)
            )
            self.collector.update_concurrency(len(batch))
            outcomes = await asyncio.gather(
                *(self._fetch_one(ref) for ref in batch), return_exceptions=True
            )

            succeeded = 0
            for ref, outcome in zip(batch, outcomes, strict=True):
                if isinstance(outcome, BaseException):
                    if not isinstance(outcome, Exception):
                        raise outcome
                    outcome = ActionResult(
                        ActionType.FETCH,
                        ActionStatus.FAILED,
                        ref.record.bucket.value,
                        self.instance.relative(ref.target),
                        mod_id=ref.record.id,
                        error_message=str(outcome),
                    )
                self._record(result, outcome)
                succeeded += outcome.success

            logger.info(
                "Batch completed",
                batch_number=number,
                successful=succeeded,
                failed=len(batch) - succeeded,
            )
        self.collector.update_concurrency(0)

    async def _fetch_one(self, ref: MemberRef) -> ActionResult:
        record = ref.record
        target = ref.target
        relative = self.instance.relative(target)
        start = time.monotonic()
        try:
            data = await self.resolver.fetch(record.source, record.filename)
            await asyncio.to_thread(_write_atomic, self.instance.file_path(target), data)
        except Exception as e:
            logger.warning("Fetch failed", mod_id=record.id, target=relative, error=str(e))
            return ActionResult(
                ActionType.FETCH,
                ActionStatus.FAILED,
                record.bucket.value,
                relative,
                mod_id=record.id,
                error_message=str(e),
                duration_ms=(time.monotonic() - start) * 1000,
            )
        finally:
            # Mutated between awaits only, so no lock is needed
            self._completed += 1
            if self.options.progress is not None:
                self.options.progress(self._completed, self._total)

        logger.debug("Fetched", mod_id=record.id, target=relative, bytes=len(data))
        return ActionResult(
            ActionType.FETCH,
            ActionStatus.SUCCEEDED,
            record.bucket.value,
            relative,
            mod_id=record.id,
            duration_ms=(time.monotonic() - start) * 1000,
        )

    # ------------------------------------------------------------------
    # Renames and removals
    # ------------------------------------------------------------------

    def _toggle(self, item: ToggleItem) -> ActionResult:
        source = self.instance.file_path(item.file)
        wanted = InstanceFile(item.file.bucket, item.file.filename, item.want_enabled)
        target = self.instance.file_path(wanted)
        relative = self.instance.relative(wanted)
        try:
            os.replace(source, target)
        except OSError as e:
            logger.warning("Toggle failed", mod_id=item.mod_id, target=relative, error=str(e))
            return ActionResult(
                ActionType.TOGGLE,
                ActionStatus.FAILED,
                item.file.bucket.value,
                relative,
                mod_id=item.mod_id,
                error_message=str(e),
            )
        logger.debug("Toggled", mod_id=item.mod_id, target=relative)
        return ActionResult(
            ActionType.TOGGLE, ActionStatus.SUCCEEDED, item.file.bucket.value, relative, item.mod_id
        )

    def _remove(self, file: InstanceFile) -> ActionResult:
        path = self.instance.file_path(file)
        relative = self.instance.relative(file)
        try:
            path.unlink()
        except OSError as e:
            logger.warning("Remove failed", target=relative, error=str(e))
            return ActionResult(
                ActionType.REMOVE,
                ActionStatus.FAILED,
                file.bucket.value,
                relative,
                error_message=str(e),
            )
        logger.debug("Removed", target=relative)
        return ActionResult(ActionType.REMOVE, ActionStatus.SUCCEEDED, file.bucket.value, relative)

    # ------------------------------------------------------------------
    # Bookkeeping
    # ------------------------------------------------------------------

    def _record(self, result: ApplyResult, action: ActionResult) -> None:
        result.actions.append(action)
        self.collector.count_action(action.action.value, action.status.value, action.bucket)
        if action.status != ActionStatus.SUCCEEDED:
            result.errors.append(f"{action.action.value} {action.target}: {action.error_message}")
            if action.action == ActionType.FETCH:
                result.skipped += 1
            return
        if action.action == ActionType.FETCH:
            result.fetched += 1
        elif action.action == ActionType.TOGGLE:
            result.toggled += 1
        elif action.action == ActionType.REMOVE:
            result.removed += 1


async def apply(
    plan: ReconciliationPlan,
    resolver: ContentResolver,
    instance: InstanceTarget | Path | str,
    concurrency: int = DEFAULT_CONCURRENCY,
    config_mode: ConfigSyncMode = ConfigSyncMode.OVERWRITE,
    overrides_dir: Path | None = None,
    progress: ProgressCallback | None = None,
    cancel: asyncio.Event | None = None,
) -> ApplyResult:
    """Apply a plan with a one-off PlanApplier."""
    options = ApplyOptions(
        concurrency=concurrency,
        config_mode=config_mode,
        overrides_dir=overrides_dir,
        progress=progress,
        cancel=cancel,
    )
    return await PlanApplier(resolver, instance, options).apply(plan)
