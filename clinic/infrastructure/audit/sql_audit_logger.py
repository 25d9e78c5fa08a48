import json
import logging
from typing import Optional, Dict, Any, List
from sqlmodel import Session, select

from ...db.models import AuditLog
from ...application.ports.audit_logger import AuditLogger, AuditEntry
from ..persistence.sqlalchemy.repositories._base import commit, save, storage_call


class SqlAuditLogger(AuditLogger):
    """Writes audit_logs rows and mirrors each entry to the application log.

    Shares the session with the repositories, so log() commits the audited
    change and its entry together or rolls both back.
    """

    def __init__(self, session: Session) -> None:
        self.session = session
        self._logger = logging.getLogger(__name__)

    def log(self, action: str, table_name: str, record_id: Optional[str] = None, user_id: Optional[str] = None, old_values: Optional[Dict[str, Any]] = None, new_values: Optional[Dict[str, Any]] = None, ip_address: Optional[str] = None, user_agent: Optional[str] = None) -> None:
        entry = AuditLog(
            user_id=user_id,
            action=action,
            table_name=table_name,
            record_id=record_id,
            old_values=old_values,
            new_values=new_values,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        save(self.session, entry, "write audit log")
        stamp = entry.timestamp
        commit(self.session, "write audit log")
        self._logger.info("AUDIT: " + json.dumps({
            "timestamp": stamp.isoformat(),
            "action": action,
            "table": table_name,
            "record_id": record_id,
            "user_id": user_id,
        }))

    def list_recent(self, limit: int = 50) -> List[AuditEntry]:
        with storage_call(self.session, "list audit logs"):
            rows = self.session.exec(select(AuditLog).order_by(AuditLog.timestamp.desc()).limit(limit)).all()
        return [
            AuditEntry(
                id=r.id,
                user_id=r.user_id,
                action=r.action,
                table_name=r.table_name,
                record_id=r.record_id,
                old_values=r.old_values,
                new_values=r.new_values,
                ip_address=r.ip_address,
                user_agent=r.user_agent,
                timestamp=r.timestamp,
            )
            for r in rows
        ]
