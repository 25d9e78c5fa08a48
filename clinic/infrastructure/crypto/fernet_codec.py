"""Field codec for sensitive text columns (SSN, diagnosis, medication names, ...).

Uses Fernet (AES-128-CBC + HMAC-SHA256) from the `cryptography` library.
The key comes from FIELD_ENCRYPTION_KEY. Unlike a transparent column type,
a missing or malformed key is an error: sensitive values are never stored
in plaintext.
"""
import logging
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from ...application.ports.field_codec import FieldCodec
from ...core.config import settings
from ...exceptions import APIException, ValidationError

logger = logging.getLogger(__name__)


class FieldEncryptionUnavailable(APIException):
    status_code_default = 503


class FernetFieldCodec(FieldCodec):
    def __init__(self, key: Optional[str] = None) -> None:
        key = (key if key is not None else settings.FIELD_ENCRYPTION_KEY).strip()
        if not key:
            raise FieldEncryptionUnavailable("FIELD_ENCRYPTION_KEY is not configured")
        try:
            self._fernet = Fernet(key.encode())
        except (ValueError, TypeError):
            logger.error("FIELD_ENCRYPTION_KEY is malformed, cannot initialise field encryption")
            raise FieldEncryptionUnavailable("FIELD_ENCRYPTION_KEY is malformed")

    def encrypt(self, plain_text: str) -> str:
        return self._fernet.encrypt(plain_text.encode("utf-8")).decode("ascii")

    def decrypt(self, encrypted_text: str) -> str:
        try:
            return self._fernet.decrypt(encrypted_text.encode("ascii")).decode("utf-8")
        except (InvalidToken, UnicodeEncodeError):
            logger.error("Failed to decrypt field value, key may have changed")
            raise ValidationError("Encrypted value could not be decrypted")
