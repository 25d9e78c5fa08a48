from datetime import timedelta
from typing import Optional
import jwt

from ...core.clock import utc_now
from ...core.config import settings
from ...application.ports.storage_repo import LinkSigner


class JwtLinkSigner(LinkSigner):
    """Short-lived download links for stored report files."""

    def __init__(self, secret: str = None, algorithm: str = None) -> None:
        self.secret = secret or settings.SECRET_KEY
        self.algorithm = algorithm or settings.ALGORITHM

    def sign(self, file_path: str, ttl_seconds: int) -> str:
        payload = {
            "path": file_path,
            "type": "report_download",
            "exp": utc_now() + timedelta(seconds=ttl_seconds),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> Optional[str]:
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.InvalidTokenError:
            return None
        if payload.get("type") != "report_download":
            return None
        return payload.get("path")
