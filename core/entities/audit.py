from dataclasses import dataclass
from typing import Optional, Dict, Any


@dataclass
class AuditLog:
    id: Optional[int]
    action: str                     # e.g. RESERVATION_CREATE
    entity: str
    created_at: str
    organization_id: Optional[int] = None
    user_id: Optional[int] = None
    entity_id: Optional[str] = None
    old_data: Optional[Dict[str, Any]] = None
    new_data: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
