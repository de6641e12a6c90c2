"""Shared test doubles: re-export memory backends."""

from __future__ import annotations

from showsync.persistence.memory_backend import (
    MemoryActivitySink,
    MemoryAttachmentSigner,
    MemoryCacheBackend,
    MemoryDiscussionStore,
    MemoryShowSetStore,
    MemoryTranslationQueue,
)

__all__ = [
    "MemoryActivitySink",
    "MemoryAttachmentSigner",
    "MemoryCacheBackend",
    "MemoryDiscussionStore",
    "MemoryShowSetStore",
    "MemoryTranslationQueue",
]
