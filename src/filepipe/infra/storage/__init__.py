"""Blob storage contracts and adapters."""

from filepipe.infra.storage.blob_store import BlobStore, LocalBlobStore

__all__ = [
    "BlobStore",
    "LocalBlobStore",
]
