"""
Storage module - Transcript rows and audio blobs.
"""

from lectra.services.storage.blob_store import (
    BaseBlobStore,
    LocalBlobStore,
    SupabaseBlobStore,
    create_blob_store,
)
from lectra.services.storage.database import (
    Base,
    StoreClient,
    create_tables,
    init_store,
    teardown_store,
)
from lectra.services.storage.models_db import Transcription
from lectra.services.storage.repository import TranscriptionRepository

__all__ = [
    "Base",
    "BaseBlobStore",
    "LocalBlobStore",
    "StoreClient",
    "SupabaseBlobStore",
    "Transcription",
    "TranscriptionRepository",
    "create_blob_store",
    "create_tables",
    "init_store",
    "teardown_store",
]
