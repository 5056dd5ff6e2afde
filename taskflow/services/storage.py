"""
Backends de stockage des pièces jointes.

Un seul contrat pour tous les backends:
    store(name, data, content_type) -> locator
    retrieve(locator)               -> StoredBlob (chemin local ou URL de redirection)
    delete(locator)                 -> None

Le backend est choisi par configuration (STORAGE_BACKEND).
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import requests

from taskflow.core.config import settings

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Échec d'écriture/lecture/suppression côté backend."""


class StoredBlob:
    def __init__(self, path: Optional[Path] = None, url: Optional[str] = None):
        self.path = path
        self.url = url

    @property
    def is_redirect(self) -> bool:
        return self.url is not None


class BlobStorage(ABC):
    provider = "abstract"

    @abstractmethod
    def store(self, name: str, data: bytes, content_type: str) -> str:
        """Persiste les octets et retourne un locator opaque."""

    @abstractmethod
    def retrieve(self, locator: str) -> StoredBlob:
        """Retourne le blob, StorageError s'il n'existe pas."""

    @abstractmethod
    def delete(self, locator: str) -> None:
        pass

    def public_url(self, locator: str) -> Optional[str]:
        return None


class LocalDiskStorage(BlobStorage):
    provider = "local"

    def __init__(self, upload_dir):
        self.upload_dir = Path(upload_dir)

    def _path(self, locator: str) -> Path:
        # le locator est un nom de fichier, jamais un chemin
        name = Path(locator).name
        if not name or name != locator:
            raise StorageError(f"Invalid locator: {locator!r}")
        return self.upload_dir / name

    def store(self, name: str, data: bytes, content_type: str) -> str:
        path = self._path(name)
        try:
            self.upload_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Failed to write {name}: {e}") from e
        logger.info(f"Stored {name} ({len(data)} bytes) in {self.upload_dir}")
        return name

    def retrieve(self, locator: str) -> StoredBlob:
        path = self._path(locator)
        if not path.is_file():
            raise StorageError(f"File not found: {locator}")
        return StoredBlob(path=path)

    def delete(self, locator: str) -> None:
        path = self._path(locator)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.debug(f"Nothing to delete for {locator}")
        except OSError as e:
            raise StorageError(f"Failed to delete {locator}: {e}") from e


class CloudObjectStorage(BlobStorage):
    """Stockage objet HTTP: PUT/DELETE sur <base_url>/<name>, l'URL sert de locator."""

    provider = "cloud"

    def __init__(self, base_url: str, token: str = "", timeout: int = 30, session=None):
        if not base_url:
            raise ValueError("CLOUD_STORAGE_URL is required for the cloud backend")
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self, content_type: Optional[str] = None) -> dict:
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if content_type:
            headers["Content-Type"] = content_type
        return headers

    def store(self, name: str, data: bytes, content_type: str) -> str:
        url = f"{self.base_url}/{name}"
        try:
            response = self.session.put(
                url, data=data, headers=self._headers(content_type), timeout=self.timeout
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise StorageError(f"Upload of {name} failed: {e}") from e
        logger.info(f"Uploaded {name} ({len(data)} bytes) to {self.base_url}")
        return url

    def retrieve(self, locator: str) -> StoredBlob:
        return StoredBlob(url=locator)

    def delete(self, locator: str) -> None:
        try:
            response = self.session.delete(locator, headers=self._headers(), timeout=self.timeout)
            if response.status_code != 404:
                response.raise_for_status()
        except requests.RequestException as e:
            raise StorageError(f"Delete of {locator} failed: {e}") from e

    def public_url(self, locator: str) -> Optional[str]:
        return locator


_storage: Optional[BlobStorage] = None


def build_storage(backend: str) -> BlobStorage:
    if backend == "local":
        return LocalDiskStorage(settings.UPLOAD_DIR)
    if backend == "cloud":
        return CloudObjectStorage(
            settings.CLOUD_STORAGE_URL,
            token=settings.CLOUD_STORAGE_TOKEN,
            timeout=settings.CLOUD_STORAGE_TIMEOUT,
        )
    raise ValueError(f"Unknown storage backend: {backend}")


def get_storage() -> BlobStorage:
    """Dépendance FastAPI: backend configuré (créé une seule fois)."""
    global _storage
    if _storage is None:
        _storage = build_storage(settings.STORAGE_BACKEND)
    return _storage


def reset_storage() -> None:
    global _storage
    _storage = None
