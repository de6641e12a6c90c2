"""Re-export persistence protocols from core for convenience."""

from __future__ import annotations

from showsync.core.protocols import (
    IActivitySink,
    IAttachmentSigner,
    ICacheBackend,
    IDiscussionStore,
    IShowSetStore,
    ITranslationQueue,
)

__all__ = [
    "IActivitySink",
    "IAttachmentSigner",
    "ICacheBackend",
    "IDiscussionStore",
    "IShowSetStore",
    "ITranslationQueue",
]
