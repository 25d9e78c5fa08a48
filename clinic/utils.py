import logging
from typing import Optional, Dict, Any
import jwt

from .core.config import settings
from .application.identity import Identity, Role

logger = logging.getLogger(__name__)


def decode_jwt_token(token: str) -> Optional[Dict[str, Any]]:
    """Decode and verify a bearer token issued by the identity provider"""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def identity_from_token(token: str) -> Optional[Identity]:
    payload = decode_jwt_token(token)
    if not payload:
        return None
    user_id = payload.get("sub")
    if not user_id:
        logger.warning("JWT token missing user ID")
        return None
    try:
        role = Role(payload.get("role", Role.PATIENT.value))
    except ValueError:
        logger.warning(f"JWT token carries unknown role {payload.get('role')!r}")
        return None
    return Identity(user_id=str(user_id), role=role)
