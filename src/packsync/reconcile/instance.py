"""Instance directories and the on-disk probe."""

from dataclasses import dataclass
from pathlib import Path

import structlog

from ..models import DISABLED_SUFFIX, ContentBucket, InstanceFile, InstanceState
from ..utils.exceptions import InstanceUnavailableError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class InstanceTarget:
    """
    A game instance directory.

    Content lives in one folder per bucket (``mods/``, ``resourcepacks/``,
    ``shaderpacks/``). A disabled file carries ``disabled_suffix`` after its
    normal name.
    """

    path: Path
    disabled_suffix: str = DISABLED_SUFFIX

    def bucket_dir(self, bucket: ContentBucket) -> Path:
        return self.path / bucket.folder

    def file_path(self, file: InstanceFile) -> Path:
        return self.bucket_dir(file.bucket) / file.physical_name(self.disabled_suffix)

    def relative(self, file: InstanceFile) -> str:
        return f"{file.bucket.folder}/{file.physical_name(self.disabled_suffix)}"

    def ensure_available(self) -> None:
        """
        Raises:
            InstanceUnavailableError: If the instance directory is missing
                or not a directory
        """
        if not self.path.exists():
            raise InstanceUnavailableError(str(self.path))
        if not self.path.is_dir():
            raise InstanceUnavailableError(str(self.path), "not a directory")


def as_target(instance: InstanceTarget | Path | str) -> InstanceTarget:
    if isinstance(instance, InstanceTarget):
        return instance
    return InstanceTarget(Path(instance))


def probe_instance(instance: InstanceTarget | Path | str) -> InstanceState:
    """
    Read what content an instance currently holds.

    ``name.disabled`` is recorded as the disabled form of ``name``. If both
    forms exist, the enabled form wins. Hidden files (leading dot) are
    ignored; they are partial downloads or OS metadata.

    Raises:
        InstanceUnavailableError: If the instance directory is missing
    """
    target = as_target(instance)
    target.ensure_available()

    state = InstanceState()
    suffix = target.disabled_suffix
    for bucket in ContentBucket:
        folder = target.bucket_dir(bucket)
        if not folder.is_dir():
            continue
        for entry in folder.iterdir():
            if not entry.is_file() or entry.name.startswith("."):
                continue
            name = entry.name
            if name.endswith(suffix) and len(name) > len(suffix):
                base = name[: -len(suffix)]
                if state.lookup(bucket, base) is None:
                    state.add(bucket, base, enabled=False)
            else:
                state.add(bucket, name, enabled=True)

    logger.debug("Instance probed", path=str(target.path), files=len(state))
    return state
