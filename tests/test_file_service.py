"""
Tests for tenant media files
"""

import pytest
from sqlalchemy.exc import OperationalError

from app.core.errors import ErrorCode, TenantError
from app.models import TenantFile
from app.services.file_service import FileService, LocalBlobStore


class MemoryBlobStore:
    def __init__(self):
        self.blobs = {}

    def put(self, path, content):
        url = f"memory://{path}"
        self.blobs[url] = content
        return url

    def delete(self, url):
        self.blobs.pop(url, None)


class FullDiskBlobStore(MemoryBlobStore):
    def put(self, path, content):
        raise OSError(28, "No space left on device")


@pytest.fixture
def blob_store():
    return MemoryBlobStore()


@pytest.fixture
def file_service(db_session, admin_context, blob_store):
    return FileService(db_session, admin_context, blob_store)


def test_upload_assigns_display_order_per_type(file_service, blob_store, sample_tenant):
    first = file_service.upload(sample_tenant.id, "a.png", b"png", "image")
    second = file_service.upload(sample_tenant.id, "b.jpg", b"jpg", "image")
    song = file_service.upload(sample_tenant.id, "song.mp3", b"mp3", "music")

    assert [first.display_order, second.display_order, song.display_order] == [0, 1, 0]
    assert first.url in blob_store.blobs


def test_update_renames_and_reorders(file_service, sample_tenant):
    first = file_service.upload(sample_tenant.id, "a.png", b"png", "image")
    second = file_service.upload(sample_tenant.id, "b.png", b"png", "image")

    file_service.update(sample_tenant.id, first.id, display_order=5)
    renamed = file_service.update(sample_tenant.id, second.id, name="  Cover photo  ")

    assert renamed.name == "Cover photo"
    assert [f.id for f in file_service.list_files(sample_tenant.id, "image")] == [second.id, first.id]


@pytest.mark.parametrize("kwargs,message", [
    ({}, "No valid fields to update"),
    ({"name": "   "}, "File name must not be empty"),
    ({"display_order": -1}, "Display order must be zero or greater"),
])
def test_update_validation(file_service, sample_tenant, kwargs, message):
    record = file_service.upload(sample_tenant.id, "a.png", b"png", "image")

    with pytest.raises(TenantError) as exc_info:
        file_service.update(sample_tenant.id, record.id, **kwargs)
    assert exc_info.value.code == ErrorCode.VALIDATION_ERROR
    assert exc_info.value.message == message


def test_update_is_tenant_scoped(file_service, sample_tenant, other_tenant):
    record = file_service.upload(sample_tenant.id, "a.png", b"png", "image")

    with pytest.raises(TenantError) as exc_info:
        file_service.update(other_tenant.id, record.id, name="Stolen")
    assert exc_info.value.code == ErrorCode.TENANT_NOT_FOUND


def test_list_files_requires_active_tenant(file_service, tenant_repo, sample_tenant):
    file_service.upload(sample_tenant.id, "a.png", b"png", "image")
    tenant_repo.delete(sample_tenant.id)

    with pytest.raises(TenantError) as exc_info:
        file_service.list_files(sample_tenant.id)
    assert exc_info.value.code == ErrorCode.TENANT_NOT_FOUND


def test_blob_removed_when_commit_fails(file_service, blob_store, db_session, sample_tenant, monkeypatch):
    def failing_commit():
        raise OperationalError("INSERT INTO files", {}, Exception("database is locked"))

    monkeypatch.setattr(db_session, "commit", failing_commit)

    with pytest.raises(TenantError) as exc_info:
        file_service.upload(sample_tenant.id, "a.png", b"png", "image")
    assert exc_info.value.code == ErrorCode.DATABASE_ERROR
    assert blob_store.blobs == {}


def test_storage_failure_is_database_error(db_session, admin_context, sample_tenant):
    service = FileService(db_session, admin_context, FullDiskBlobStore())

    with pytest.raises(TenantError) as exc_info:
        service.upload(sample_tenant.id, "a.png", b"png", "image")
    assert exc_info.value.code == ErrorCode.DATABASE_ERROR
    assert db_session.query(TenantFile).count() == 0


def test_local_blob_store_round_trip(tmp_path):
    store = LocalBlobStore(root=str(tmp_path), base_url="http://files.test/uploads/")

    url = store.put("tenant-1/files/image/1-a.png", b"png")
    assert url == "http://files.test/uploads/tenant-1/files/image/1-a.png"
    assert (tmp_path / "tenant-1/files/image/1-a.png").read_bytes() == b"png"

    store.delete(url)
    assert not (tmp_path / "tenant-1/files/image/1-a.png").exists()
