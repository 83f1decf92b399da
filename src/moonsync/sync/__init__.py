# ABOUTME: Sync engine: matching, hashing, note parsing, and the reconciliation pass.
# ABOUTME: Exports the pipeline entry points used by the CLI.

from moonsync.sync.pipeline import (
    SyncError,
    create_book_document,
    force_refresh_metadata,
    import_manual_export,
    summarize,
    sync_from_source,
)
from moonsync.sync.synchronizer import DocumentSynchronizer, SyncOutcome, SyncResult

__all__ = [
    "DocumentSynchronizer",
    "SyncError",
    "SyncOutcome",
    "SyncResult",
    "create_book_document",
    "force_refresh_metadata",
    "import_manual_export",
    "summarize",
    "sync_from_source",
]
