"""Document persistence for the catalog, modpacks, histories and pending imports.

Layout (JsonDocumentStore):
--------------------------
```
<base_dir>/
    catalog.json              # {"records": [ModRecord, ...]}
    modpacks/<id>.json        # ModpackDefinition
    versions/<id>.json        # VersionHistory
    pending/<token>.json      # PendingImport
```

Writes go to a temporary sibling file which is then moved over the target
with ``os.replace``, so readers never see a half-written document.

Reads are tolerant. A document that fails to decode is first run through
``recover_truncated_json``, which cuts it back to the last complete value and
closes any brackets left open. If that fails too, the file is renamed aside
to ``<name>.corrupt-<timestamp>`` and the store carries on as if the
document did not exist.
"""

import json
import os
import re
import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, TypeVar

import pydantic
import structlog

from ..models import ModpackDefinition, ModRecord, PendingImport, VersionHistory
from ..utils.exceptions import DocumentCorruptError

logger = structlog.get_logger(__name__)

T = TypeVar("T")

MAX_RECOVERY_ATTEMPTS = 256

_SAFE_ID = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")

_CLOSERS = {"{": "}", "[": "]"}


def is_safe_document_id(doc_id: str) -> bool:
    """Whether an id can be used as a file name without escaping its directory."""
    return bool(_SAFE_ID.match(doc_id)) and ".." not in doc_id


def recover_truncated_json(text: str, accept: Callable[[Any], bool] | None = None) -> Any | None:
    """
    Best-effort recovery of a truncated or trailing-garbage JSON document.

    Every position just after a ``}`` or ``]`` outside a string is a
    candidate cut point. Candidates are tried from the end backwards: the
    text is cut there, the brackets still open at that point are closed, and
    the result is parsed. The first candidate that parses (and that
    ``accept`` approves, when given) wins.

    Args:
        text: Raw document text
        accept: Optional predicate applied to the parsed value

    Returns:
        The recovered value, or None if no candidate worked
    """
    candidates: list[tuple[int, str]] = []
    stack: list[str] = []
    in_string = False
    escaped = False

    for pos, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char in _CLOSERS:
            stack.append(char)
        elif char in "}]":
            if not stack or _CLOSERS[stack[-1]] != char:
                # Structure is broken from here on
                break
            stack.pop()
            closing = "".join(_CLOSERS[opener] for opener in reversed(stack))
            candidates.append((pos + 1, closing))

    for end, closing in list(reversed(candidates))[:MAX_RECOVERY_ATTEMPTS]:
        try:
            value = json.loads(text[:end] + closing)
        except json.JSONDecodeError:
            continue
        if accept is None or accept(value):
            return value
    return None


class DocumentStore(ABC):
    """Storage handle injected into every store and coordinator."""

    @abstractmethod
    def load_catalog(self) -> list[ModRecord]:
        pass

    @abstractmethod
    def save_catalog(self, records: list[ModRecord]) -> None:
        pass

    @abstractmethod
    def load_modpack(self, modpack_id: str) -> ModpackDefinition | None:
        pass

    @abstractmethod
    def save_modpack(self, definition: ModpackDefinition) -> None:
        pass

    @abstractmethod
    def delete_modpack(self, modpack_id: str) -> bool:
        pass

    @abstractmethod
    def list_modpack_ids(self) -> list[str]:
        pass

    @abstractmethod
    def load_history(self, modpack_id: str) -> VersionHistory | None:
        pass

    @abstractmethod
    def save_history(self, history: VersionHistory) -> None:
        pass

    @abstractmethod
    def delete_history(self, modpack_id: str) -> bool:
        pass

    @abstractmethod
    def load_pending(self, token_id: str) -> PendingImport | None:
        pass

    @abstractmethod
    def save_pending(self, pending: PendingImport) -> None:
        pass

    @abstractmethod
    def delete_pending(self, token_id: str) -> bool:
        pass

    @abstractmethod
    def list_pending(self) -> list[PendingImport]:
        pass

    def load_modpacks(self) -> list[ModpackDefinition]:
        """Every readable modpack definition."""
        definitions = []
        for modpack_id in self.list_modpack_ids():
            definition = self.load_modpack(modpack_id)
            if definition is not None:
                definitions.append(definition)
        return definitions


def _decode_catalog(raw: Any) -> list[ModRecord]:
    """Decode catalog payload, dropping individual records that fail validation."""
    if isinstance(raw, dict):
        raw = raw.get("records")
    if not isinstance(raw, list):
        raise ValueError("catalog document must hold a list of records")
    records = []
    for item in raw:
        try:
            records.append(ModRecord.model_validate(item))
        except pydantic.ValidationError as e:
            logger.warning(
                "Dropping invalid catalog record",
                record_id=item.get("id") if isinstance(item, dict) else None,
                error=str(e).splitlines()[0],
            )
    return records


def _encode_catalog(records: list[ModRecord]) -> str:
    return json.dumps(
        {"records": [record.model_dump(mode="json") for record in records]},
        indent=2,
    )


class JsonDocumentStore(DocumentStore):
    """One JSON document per entity under a base directory."""

    def __init__(self, base_dir: str | Path) -> None:
        """
        Args:
            base_dir: Root directory; created on first write
        """
        self.base_dir = Path(base_dir)
        self.quarantined: list[Path] = []

    @property
    def catalog_path(self) -> Path:
        return self.base_dir / "catalog.json"

    def _modpack_path(self, modpack_id: str) -> Path:
        return self.base_dir / "modpacks" / f"{modpack_id}.json"

    def _history_path(self, modpack_id: str) -> Path:
        return self.base_dir / "versions" / f"{modpack_id}.json"

    def _pending_path(self, token_id: str) -> Path:
        return self.base_dir / "pending" / f"{token_id}.json"

    # ------------------------------------------------------------------
    # Low-level I/O
    # ------------------------------------------------------------------

    def _write(self, path: Path, payload: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex[:8]}.tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise
        logger.debug("Document written", path=str(path), bytes=len(payload))

    def _decode(self, path: Path, text: str, decode: Callable[[Any], T]) -> T:
        """
        Decode a document, trying truncation recovery on failure.

        Raises:
            DocumentCorruptError: If neither the text nor any recovered
                prefix of it decodes
        """
        try:
            return decode(json.loads(text))
        except (json.JSONDecodeError, pydantic.ValidationError, ValueError) as e:
            first_error = e

        def accept(value: Any) -> bool:
            try:
                decode(value)
            except (pydantic.ValidationError, ValueError):
                return False
            return True

        recovered = recover_truncated_json(text, accept=accept)
        if recovered is None:
            raise DocumentCorruptError(str(path), str(first_error).splitlines()[0])

        logger.warning("Recovered truncated document", path=str(path))
        result = decode(recovered)
        self._write(path, json.dumps(recovered, indent=2))
        return result

    def _quarantine(self, path: Path, reason: str) -> None:
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
        target = path.with_name(f"{path.name}.corrupt-{stamp}")
        try:
            os.replace(path, target)
        except OSError as e:
            logger.error("Failed to quarantine document", path=str(path), error=str(e))
            return
        self.quarantined.append(target)
        logger.warning(
            "Quarantined corrupt document",
            path=str(path),
            quarantined_as=target.name,
            reason=reason,
        )

    def _read(self, path: Path, decode: Callable[[Any], T]) -> T | None:
        if not path.exists():
            return None
        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            self._quarantine(path, f"not valid UTF-8: {e}")
            return None
        try:
            return self._decode(path, text, decode)
        except DocumentCorruptError as e:
            self._quarantine(path, e.reason)
            return None

    def _delete(self, path: Path) -> bool:
        if not path.exists():
            return False
        path.unlink()
        return True

    def _list_ids(self, directory: Path) -> list[str]:
        if not directory.is_dir():
            return []
        return sorted(
            p.stem for p in directory.glob("*.json") if not p.name.startswith(".")
        )

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def load_catalog(self) -> list[ModRecord]:
        return self._read(self.catalog_path, _decode_catalog) or []

    def save_catalog(self, records: list[ModRecord]) -> None:
        self._write(self.catalog_path, _encode_catalog(records))

    # ------------------------------------------------------------------
    # Modpacks
    # ------------------------------------------------------------------

    def load_modpack(self, modpack_id: str) -> ModpackDefinition | None:
        if not is_safe_document_id(modpack_id):
            return None
        return self._read(self._modpack_path(modpack_id), ModpackDefinition.model_validate)

    def save_modpack(self, definition: ModpackDefinition) -> None:
        if not is_safe_document_id(definition.id):
            raise ValueError(f"Unsafe modpack id: {definition.id!r}")
        self._write(self._modpack_path(definition.id), definition.model_dump_json(indent=2))

    def delete_modpack(self, modpack_id: str) -> bool:
        if not is_safe_document_id(modpack_id):
            return False
        return self._delete(self._modpack_path(modpack_id))

    def list_modpack_ids(self) -> list[str]:
        return self._list_ids(self.base_dir / "modpacks")

    # ------------------------------------------------------------------
    # Version histories
    # ------------------------------------------------------------------

    def load_history(self, modpack_id: str) -> VersionHistory | None:
        if not is_safe_document_id(modpack_id):
            return None
        return self._read(self._history_path(modpack_id), VersionHistory.model_validate)

    def save_history(self, history: VersionHistory) -> None:
        if not is_safe_document_id(history.modpack_id):
            raise ValueError(f"Unsafe modpack id: {history.modpack_id!r}")
        self._write(self._history_path(history.modpack_id), history.model_dump_json(indent=2))

    def delete_history(self, modpack_id: str) -> bool:
        if not is_safe_document_id(modpack_id):
            return False
        return self._delete(self._history_path(modpack_id))

    # ------------------------------------------------------------------
    # Pending imports
    # ------------------------------------------------------------------

    def load_pending(self, token_id: str) -> PendingImport | None:
        if not is_safe_document_id(token_id):
            return None
        return self._read(self._pending_path(token_id), PendingImport.model_validate)

    def save_pending(self, pending: PendingImport) -> None:
        self._write(self._pending_path(pending.token_id), pending.model_dump_json(indent=2))

    def delete_pending(self, token_id: str) -> bool:
        if not is_safe_document_id(token_id):
            return False
        return self._delete(self._pending_path(token_id))

    def list_pending(self) -> list[PendingImport]:
        tokens = []
        for token_id in self._list_ids(self.base_dir / "pending"):
            pending = self.load_pending(token_id)
            if pending is not None:
                tokens.append(pending)
        return tokens


class MemoryDocumentStore(DocumentStore):
    """
    In-memory store for tests and embedding.

    Documents are kept as JSON text so every load goes through the same
    validation as the file-backed store, and callers never share mutable
    model instances with the store.
    """

    def __init__(self) -> None:
        self._catalog: str | None = None
        self._modpacks: dict[str, str] = {}
        self._histories: dict[str, str] = {}
        self._pending: dict[str, str] = {}

    def load_catalog(self) -> list[ModRecord]:
        if self._catalog is None:
            return []
        return _decode_catalog(json.loads(self._catalog))

    def save_catalog(self, records: list[ModRecord]) -> None:
        self._catalog = _encode_catalog(records)

    def load_modpack(self, modpack_id: str) -> ModpackDefinition | None:
        raw = self._modpacks.get(modpack_id)
        return ModpackDefinition.model_validate_json(raw) if raw is not None else None

    def save_modpack(self, definition: ModpackDefinition) -> None:
        self._modpacks[definition.id] = definition.model_dump_json()

    def delete_modpack(self, modpack_id: str) -> bool:
        return self._modpacks.pop(modpack_id, None) is not None

    def list_modpack_ids(self) -> list[str]:
        return sorted(self._modpacks)

    def load_history(self, modpack_id: str) -> VersionHistory | None:
        raw = self._histories.get(modpack_id)
        return VersionHistory.model_validate_json(raw) if raw is not None else None

    def save_history(self, history: VersionHistory) -> None:
        self._histories[history.modpack_id] = history.model_dump_json()

    def delete_history(self, modpack_id: str) -> bool:
        return self._histories.pop(modpack_id, None) is not None

    def load_pending(self, token_id: str) -> PendingImport | None:
        raw = self._pending.get(token_id)
        return PendingImport.model_validate_json(raw) if raw is not None else None

    def save_pending(self, pending: PendingImport) -> None:
        self._pending[pending.token_id] = pending.model_dump_json()

    def delete_pending(self, token_id: str) -> bool:
        return self._pending.pop(token_id, None) is not None

    def list_pending(self) -> list[PendingImport]:
        return [PendingImport.model_validate_json(raw) for raw in self._pending.values()]
