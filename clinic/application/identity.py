from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..exceptions import Forbidden, Unauthenticated


class Role(str, Enum):
    PATIENT = "patient"
    DOCTOR = "doctor"
    NURSE = "nurse"
    RECEPTIONIST = "receptionist"
    ADMIN = "admin"


STAFF_ROLES = (Role.DOCTOR, Role.NURSE, Role.RECEPTIONIST, Role.ADMIN)


@dataclass(frozen=True)
class Identity:
    """The acting user. Passed explicitly into every write operation."""
    user_id: str
    role: Role


def require_identity(identity: Optional[Identity]) -> Identity:
    if identity is None or not identity.user_id:
        raise Unauthenticated()
    return identity


def require_role(identity: Optional[Identity], *roles: Role) -> Identity:
    identity = require_identity(identity)
    if roles and identity.role not in roles:
        raise Forbidden(f"Role '{identity.role.value}' may not perform this action")
    return identity
