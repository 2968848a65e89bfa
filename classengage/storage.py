"""
Blob storage for contest photos: local directory and in-memory backends.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol
from urllib.parse import quote, unquote
import logging
import os

from flask import current_app

logger = logging.getLogger(__name__)


class BlobStorage(Protocol):
    """Defines the operations the app needs from object storage."""

    def save(self, path: str, data: bytes, content_type: str) -> str:
        ...

    def read(self, path: str) -> bytes:
        ...

    def delete(self, path: str) -> None:
        ...

    def url_for(self, path: str) -> str:
        ...

    def path_from_url(self, url: str) -> Optional[str]:
        ...


@dataclass
class _UrlMixin:
    url_prefix: str = "/media"

    def url_for(self, path: str) -> str:
        return f"{self.url_prefix}/{quote(path)}"

    def path_from_url(self, url: str) -> Optional[str]:
        """Recover the blob path from a URL produced by url_for"""
        if not url:
            return None
        marker = f"{self.url_prefix}/"
        _, sep, tail = url.partition(marker)
        if not sep:
            return None
        path = unquote(tail.split("?", 1)[0])
        return path or None


@dataclass
class LocalBlobStorage(_UrlMixin):
    """Stores blobs as files below a root directory."""

    root: str = "uploads"

    def _full_path(self, path: str) -> str:
        root = os.path.abspath(self.root)
        full = os.path.abspath(os.path.join(root, path))
        if os.path.commonpath([root, full]) != root:
            raise ValueError(f"Blob path escapes storage root: {path}")
        return full

    def save(self, path: str, data: bytes, content_type: str) -> str:
        full = self._full_path(path)
        os.makedirs(os.path.dirname(full), exist_ok=True)
        with open(full, "wb") as f:
            f.write(data)
        logger.debug("Stored %s (%d bytes, %s)", path, len(data), content_type)
        return self.url_for(path)

    def read(self, path: str) -> bytes:
        with open(self._full_path(path), "rb") as f:
            return f.read()

    def delete(self, path: str) -> None:
        os.remove(self._full_path(path))


@dataclass
class InMemoryBlobStorage(_UrlMixin):
    """Test double for storage interactions."""

    objects: dict = field(default_factory=dict)

    def save(self, path: str, data: bytes, content_type: str) -> str:
        self.objects[path] = (data, content_type)
        return self.url_for(path)

    def read(self, path: str) -> bytes:
        if path not in self.objects:
            raise FileNotFoundError(path)
        return self.objects[path][0]

    def delete(self, path: str) -> None:
        if path not in self.objects:
            raise FileNotFoundError(path)
        del self.objects[path]

    def reset(self) -> None:
        self.objects.clear()


def init_storage(app) -> BlobStorage:
    """Build the configured backend and attach it to the app"""
    backend = app.config.get("STORAGE_BACKEND", "local")
    prefix = app.config.get("MEDIA_URL_PREFIX", "/media")
    if backend == "memory":
        storage = InMemoryBlobStorage(url_prefix=prefix)
    elif backend == "local":
        storage = LocalBlobStorage(url_prefix=prefix, root=app.config["UPLOAD_FOLDER"])
    else:
        raise ValueError(f"Unknown STORAGE_BACKEND: {backend}")
    app.extensions["blob_storage"] = storage
    return storage


def get_storage() -> BlobStorage:
    return current_app.extensions["blob_storage"]
