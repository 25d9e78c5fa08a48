from typing import Optional, Protocol


class StorageRepository(Protocol):
    def save_bytes(self, path: str, data: bytes) -> str:
        ...

    def read_bytes(self, path: str) -> bytes:
        ...

    def remove(self, path: str) -> None:
        ...


class LinkSigner(Protocol):
    """Issues and checks short-lived download tokens for stored objects."""

    def sign(self, file_path: str, ttl_seconds: int) -> str:
        ...

    def verify(self, token: str) -> Optional[str]:
        ...
