"""Pipeline for uploading and distributing builds."""

from .upload import UploadOrchestrator, upload_build

__all__ = ["UploadOrchestrator", "upload_build"]
