"""Persistence layer: entity documents and the apply journal."""

from .documents import (
    DocumentStore,
    JsonDocumentStore,
    MemoryDocumentStore,
    recover_truncated_json,
)
from .journal import ApplyJournal, JournalEntry

__all__ = [
    "DocumentStore",
    "JsonDocumentStore",
    "MemoryDocumentStore",
    "recover_truncated_json",
    "ApplyJournal",
    "JournalEntry",
]
