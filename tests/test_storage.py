import pytest

from matchmycv.services.storage import LocalStorage, StorageError, init_storage, key_belongs_to


def test_local_roundtrip(tmp_path):
    storage = LocalStorage(str(tmp_path))
    key, size = storage.upload_file(b"%PDF-1.4 data", "cv.PDF", "application/pdf", "u1")
    assert key.startswith("documents/u1/") and key.endswith(".pdf")
    assert size == 13
    assert storage.download_file(key) == b"%PDF-1.4 data"
    assert storage.file_url(key) == f"/api/files/{key}"
    storage.delete_file(key)
    with pytest.raises(StorageError):
        storage.download_file(key)
    # deleting twice is harmless
    storage.delete_file(key)


def test_local_rejects_traversal(tmp_path):
    storage = LocalStorage(str(tmp_path / "root"))
    with pytest.raises(StorageError):
        storage.download_file("../outside.txt")


def test_extension_from_mime(tmp_path):
    storage = LocalStorage(str(tmp_path))
    key, _ = storage.upload_file(b"x", "noext",
                                 "application/vnd.openxmlformats-officedocument.wordprocessingml.document", "u1")
    assert key.endswith(".docx")


def test_key_ownership():
    assert key_belongs_to("documents/u1/a.pdf", "u1")
    assert key_belongs_to("exports/u1/a.pdf", "u1")
    assert not key_belongs_to("documents/u2/a.pdf", "u1")
    assert not key_belongs_to("documents/u1x/a.pdf", "u1")


def test_init_storage_picks_local_without_bucket(tmp_path):
    storage = init_storage({"SUPABASE_URL": "https://x.supabase.co", "SUPABASE_SERVICE_KEY": "",
                            "STORAGE_BUCKET": "cvs", "UPLOAD_DIR": str(tmp_path / "up")})
    assert storage.kind == "local"
    assert storage.check() == (True, None)
