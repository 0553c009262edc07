"""Config override synchronization.

Override files (configs, scripts, bundled resource packs) are a separate
artifact class from members. Syncing them is additive: files are copied or
skipped, never deleted, and user edits survive ``new_only`` and ``skip``.
"""

import shutil
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from ..config import ConfigSyncMode
from ..models import ActionResult, ActionStatus, ActionType

logger = structlog.get_logger(__name__)

OVERRIDE_FOLDERS = (
    "config",
    "kubejs",
    "resourcepacks",
    "shaderpacks",
    "defaultconfigs",
    "scripts",
    "global_packs",
)


@dataclass
class ConfigSyncResult:
    copied: int = 0
    skipped: int = 0
    warnings: list[str] = field(default_factory=list)
    actions: list[ActionResult] = field(default_factory=list)


def _iter_override_files(overrides_dir: Path) -> list[Path]:
    files: list[Path] = []
    for folder in OVERRIDE_FOLDERS:
        root = overrides_dir / folder
        if not root.is_dir():
            continue
        files.extend(
            sorted(p for p in root.rglob("*") if p.is_file() and not p.is_symlink())
        )
    return files


def sync_overrides(
    overrides_dir: Path,
    instance_dir: Path,
    mode: ConfigSyncMode = ConfigSyncMode.OVERWRITE,
) -> ConfigSyncResult:
    """
    Copy override files into an instance.

    Args:
        overrides_dir: Directory holding ``config/``, ``kubejs/`` and friends
        instance_dir: Instance root
        mode: overwrite replaces every target, new_only writes only where
            the target is absent, skip writes nothing

    Returns:
        ConfigSyncResult with per-file actions
    """
    result = ConfigSyncResult()
    if not overrides_dir.is_dir():
        result.warnings.append(f"Overrides directory not found: {overrides_dir}")
        return result

    for source in _iter_override_files(overrides_dir):
        relative = source.relative_to(overrides_dir).as_posix()
        target = instance_dir / relative

        if mode == ConfigSyncMode.SKIP or (mode == ConfigSyncMode.NEW_ONLY and target.exists()):
            result.skipped += 1
            result.actions.append(
                ActionResult(ActionType.CONFIG, ActionStatus.SKIPPED, "config", relative)
            )
            continue

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, target)
        except OSError as e:
            result.warnings.append(f"Failed to copy {relative}: {e}")
            result.actions.append(
                ActionResult(
                    ActionType.CONFIG, ActionStatus.FAILED, "config", relative, error_message=str(e)
                )
            )
            continue

        result.copied += 1
        result.actions.append(
            ActionResult(ActionType.CONFIG, ActionStatus.SUCCEEDED, "config", relative)
        )

    logger.info(
        "Config overrides synced",
        mode=mode.value,
        copied=result.copied,
        skipped=result.skipped,
    )
    return result
