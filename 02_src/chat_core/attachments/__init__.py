"""Attachments module."""

from .store import AttachmentStore, StoredFile, UploadTooLarge

__all__ = ["AttachmentStore", "StoredFile", "UploadTooLarge"]
