import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from core.entities.audit import AuditLog
from core.repositories.audit_repository import AuditRepository

logger = logging.getLogger(__name__)


def record_event(
    repo: AuditRepository,
    action: str,
    entity: str,
    entity_id: Any = None,
    organization_id: Optional[int] = None,
    user_id: Optional[int] = None,
    old_data: Optional[Dict[str, Any]] = None,
    new_data: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> None:
    """Audit trail writes never fail the operation being audited."""
    try:
        repo.log_event(AuditLog(
            id=None,
            action=action,
            entity=entity,
            entity_id=str(entity_id) if entity_id is not None else None,
            organization_id=organization_id,
            user_id=user_id,
            old_data=old_data,
            new_data=new_data,
            ip_address=ip_address,
            user_agent=user_agent,
            created_at=datetime.now(timezone.utc).isoformat(),
        ))
    except Exception:
        logger.exception("Failed to record audit event %s on %s", action, entity)
