from dataclasses import dataclass
from typing import Optional, Dict, Any, List, Protocol
from datetime import datetime


@dataclass
class AuditEntry:
    id: str
    user_id: Optional[str]
    action: str
    table_name: str
    record_id: Optional[str]
    old_values: Optional[Dict[str, Any]]
    new_values: Optional[Dict[str, Any]]
    ip_address: Optional[str]
    user_agent: Optional[str]
    timestamp: datetime


class AuditLogger(Protocol):
    """Append-only audit trail.

    log() closes the unit of work: writes staged on the same store are
    committed with the entry, and a failed entry discards them.
    """

    def log(self, action: str, table_name: str, record_id: Optional[str] = None, user_id: Optional[str] = None, old_values: Optional[Dict[str, Any]] = None, new_values: Optional[Dict[str, Any]] = None, ip_address: Optional[str] = None, user_agent: Optional[str] = None) -> None:
        ...

    def list_recent(self, limit: int = 50) -> List[AuditEntry]:
        ...
