"""
Blob Storage

Local-disk storage for uploaded application documents (ID scans, resumes).
Callers only ever hold the opaque reference returned by ``save``; the
reference is the stored file name inside the upload directory.
"""

import asyncio
import logging
import secrets
import time
from pathlib import Path, PurePath

from fastapi import Request

logger = logging.getLogger(__name__)


class BlobTooLargeError(ValueError):
    """Raised when an upload exceeds the configured size limit."""

    def __init__(self, size: int, max_bytes: int):
        self.size = size
        self.max_bytes = max_bytes
        super().__init__(f"Upload of {size} bytes exceeds the {max_bytes} byte limit")


class LocalBlobStore:
    """Stores uploads as files under ``base_path``."""

    def __init__(self, base_path: str | Path, max_bytes: int):
        self.base_path = Path(base_path)
        self.max_bytes = max_bytes
        self.base_path.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _make_name(field_name: str, original_filename: str | None) -> str:
        suffix = PurePath(original_filename or "").suffix.lower()
        unique = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}"
        return f"{field_name}-{unique}{suffix}"

    def path_for(self, reference: str) -> Path:
        """
        Resolve a reference to its file path.

        Only the final path component is honoured, so a reference can never
        point outside the upload directory.
        """
        return self.base_path / PurePath(reference).name

    async def save(self, field_name: str, original_filename: str | None, data: bytes) -> str:
        """
        Store an upload and return its reference.

        Raises:
            BlobTooLargeError: If ``data`` is larger than ``max_bytes``
        """
        if len(data) > self.max_bytes:
            raise BlobTooLargeError(len(data), self.max_bytes)

        reference = self._make_name(field_name, original_filename)
        await asyncio.to_thread(self.path_for(reference).write_bytes, data)
        logger.info(f"Stored {field_name} upload as {reference} ({len(data)} bytes)")
        return reference

    async def delete(self, reference: str) -> bool:
        """Delete a stored blob. Returns False if it did not exist."""
        path = self.path_for(reference)
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            logger.warning(f"Blob {reference} already removed")
            return False

        logger.info(f"Deleted blob {reference}")
        return True


def get_blob_store(request: Request) -> LocalBlobStore:
    """FastAPI dependency returning the store created at startup."""
    return request.app.state.blob_store
