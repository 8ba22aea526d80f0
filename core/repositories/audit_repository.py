from abc import ABC, abstractmethod
from typing import List
from core.entities.audit import AuditLog


class AuditRepository(ABC):
    @abstractmethod
    def log_event(self, event: AuditLog) -> None:...

    @abstractmethod
    def list_events(self, organization_id: int, limit: int = 100, offset: int = 0) -> List[AuditLog]:...
