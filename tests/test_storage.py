from unittest.mock import MagicMock

import pytest
import requests

from taskflow.core.config import settings
from taskflow.services import storage as storage_module
from taskflow.services.storage import CloudObjectStorage, LocalDiskStorage, StorageError, build_storage


def test_local_store_retrieve_delete(tmp_path):
    local = LocalDiskStorage(tmp_path / "blobs")
    locator = local.store("1-2-a.pdf", b"%PDF", "application/pdf")
    assert locator == "1-2-a.pdf"

    blob = local.retrieve(locator)
    assert not blob.is_redirect
    assert blob.path.read_bytes() == b"%PDF"

    local.delete(locator)
    with pytest.raises(StorageError):
        local.retrieve(locator)
    # suppression idempotente
    local.delete(locator)


def test_local_rejects_path_locators(tmp_path):
    local = LocalDiskStorage(tmp_path)
    with pytest.raises(StorageError):
        local.retrieve("../secret.pdf")


def test_cloud_store_and_delete():
    session = MagicMock()
    session.put.return_value = MagicMock(status_code=200)
    session.delete.return_value = MagicMock(status_code=204)
    cloud = CloudObjectStorage("https://bucket.example.com/", token="s3cr3t", session=session)

    locator = cloud.store("a.pdf", b"%PDF", "application/pdf")
    assert locator == "https://bucket.example.com/a.pdf"
    _, kwargs = session.put.call_args
    assert kwargs["headers"] == {"Authorization": "Bearer s3cr3t", "Content-Type": "application/pdf"}

    blob = cloud.retrieve(locator)
    assert blob.is_redirect
    assert blob.url == locator
    assert cloud.public_url(locator) == locator

    cloud.delete(locator)
    session.delete.assert_called_once()


def test_cloud_failures_raise_storage_error():
    session = MagicMock()
    session.put.side_effect = requests.ConnectionError("unreachable")
    cloud = CloudObjectStorage("https://bucket.example.com", session=session)
    with pytest.raises(StorageError):
        cloud.store("a.pdf", b"%PDF", "application/pdf")


def test_cloud_delete_ignores_missing_object():
    session = MagicMock()
    session.delete.return_value = MagicMock(status_code=404)
    cloud = CloudObjectStorage("https://bucket.example.com", session=session)
    cloud.delete("https://bucket.example.com/gone.pdf")


def test_build_storage_from_config(monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path))
    assert isinstance(build_storage("local"), LocalDiskStorage)

    monkeypatch.setattr(settings, "CLOUD_STORAGE_URL", "https://bucket.example.com")
    assert isinstance(build_storage("cloud"), CloudObjectStorage)

    with pytest.raises(ValueError):
        build_storage("ftp")


def test_get_storage_is_cached(monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "STORAGE_BACKEND", "local")
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path))
    storage_module.reset_storage()
    try:
        assert storage_module.get_storage() is storage_module.get_storage()
    finally:
        storage_module.reset_storage()
