import os

from ...core.config import settings
from ...application.ports.storage_repo import StorageRepository
from ...exceptions import NotFound, ValidationError


class LocalStorageRepository(StorageRepository):
    """Object storage for medical report files rooted at REPORTS_DIR."""

    def __init__(self, root: str = None) -> None:
        self.root = os.path.abspath(root or settings.REPORTS_DIR)

    def _resolve(self, path: str) -> str:
        full = os.path.abspath(os.path.join(self.root, path))
        if os.path.commonpath([self.root, full]) != self.root:
            raise ValidationError("Invalid storage path")
        return full

    def save_bytes(self, path: str, data: bytes) -> str:
        dest = self._resolve(path)
        if os.path.exists(dest):
            raise ValidationError("Object already exists")
        os.makedirs(os.path.dirname(dest), exist_ok=True)
        with open(dest, "wb") as f:
            f.write(data)
        return path

    def read_bytes(self, path: str) -> bytes:
        src = self._resolve(path)
        if not os.path.isfile(src):
            raise NotFound("File not found")
        with open(src, "rb") as f:
            return f.read()

    def remove(self, path: str) -> None:
        target = self._resolve(path)
        if os.path.isfile(target):
            os.remove(target)
