# ABOUTME: Document store package: protocol and filesystem implementation for the vault.
# ABOUTME: Re-exports the store types used by the sync engine and CLI.

from moonsync.store.documents import DocumentStore, FilesystemDocumentStore, normalize_path

__all__ = ["DocumentStore", "FilesystemDocumentStore", "normalize_path"]
