# matchmycv/services/storage.py
from __future__ import annotations
import logging, os, uuid
from pathlib import Path

from flask import current_app
from supabase import create_client

logger = logging.getLogger(__name__)


class StorageError(Exception):
    pass


def _extension(original_name: str, mime_type: str) -> str:
    ext = Path(original_name or "").suffix.lstrip(".").lower()
    if ext:
        return ext
    return {
        "application/pdf": "pdf",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    }.get(mime_type, "bin")


def document_key(user_id: str, original_name: str, mime_type: str) -> str:
    return f"documents/{user_id}/{uuid.uuid4()}.{_extension(original_name, mime_type)}"


def key_belongs_to(key: str, user_id: str) -> bool:
    return key.startswith(f"documents/{user_id}/") or key.startswith(f"exports/{user_id}/")


class LocalStorage:
    kind = "local"

    def __init__(self, root: str):
        self.root = Path(root).resolve()

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if path != self.root and self.root not in path.parents:
            raise StorageError("Invalid storage key")
        return path

    def upload_file(self, data: bytes, original_name: str, mime_type: str, user_id: str) -> tuple[str, int]:
        key = document_key(user_id, original_name, mime_type)
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Failed to store file: {e}") from e
        return key, len(data)

    def download_file(self, key: str) -> bytes:
        path = self._path(key)
        if not path.is_file():
            raise StorageError("File not found")
        return path.read_bytes()

    def delete_file(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete file: {e}") from e

    def file_url(self, key: str, expires_in: int = 3600) -> str:
        return f"/api/files/{key}"

    def check(self) -> tuple[bool, str | None]:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            marker = self.root / ".write-test"
            marker.write_bytes(b"ok")
            marker.unlink()
        except OSError as e:
            return False, str(e)
        return True, None


class SupabaseStorage:
    kind = "supabase"

    def __init__(self, client, bucket: str):
        self.client = client
        self.bucket = bucket

    @property
    def _bucket(self):
        return self.client.storage.from_(self.bucket)

    def upload_file(self, data: bytes, original_name: str, mime_type: str, user_id: str) -> tuple[str, int]:
        key = document_key(user_id, original_name, mime_type)
        try:
            self._bucket.upload(path=key, file=data, file_options={"content-type": mime_type})
        except Exception as e:
            raise StorageError(f"Failed to upload file: {e}") from e
        return key, len(data)

    def download_file(self, key: str) -> bytes:
        try:
            return self._bucket.download(key)
        except Exception as e:
            raise StorageError(f"Failed to download file: {e}") from e

    def delete_file(self, key: str) -> None:
        try:
            self._bucket.remove([key])
        except Exception as e:
            raise StorageError(f"Failed to delete file: {e}") from e

    def file_url(self, key: str, expires_in: int = 3600) -> str:
        try:
            res = self._bucket.create_signed_url(key, expires_in)
        except Exception as e:
            raise StorageError(f"Failed to create signed URL: {e}") from e
        return res.get("signedURL") or res.get("signedUrl") or ""

    def check(self) -> tuple[bool, str | None]:
        try:
            self._bucket.list()
        except Exception as e:
            return False, str(e)
        return True, None


def init_storage(config):
    url, key, bucket = config.get("SUPABASE_URL"), config.get("SUPABASE_SERVICE_KEY"), config.get("STORAGE_BUCKET")
    if url and key and bucket:
        logger.info("Using Supabase storage bucket %s", bucket)
        return SupabaseStorage(create_client(url, key), bucket)
    root = config.get("UPLOAD_DIR") or "uploads"
    os.makedirs(root, exist_ok=True)
    logger.info("Using local storage at %s", root)
    return LocalStorage(root)


def get_storage():
    return current_app.config["STORAGE"]
