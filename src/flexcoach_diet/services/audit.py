"""Audit logging service."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

_logger = logging.getLogger(__name__)


class AuditRepository(Protocol):
    """Persistence interface for audit events."""

    def create_event(  # noqa: PLR0913
        self,
        actor_id: str,
        entity_type: str,
        entity_id: UUID,
        event_type: str,
        before: dict[str, object] | None,
        after: dict[str, object] | None,
    ) -> None:
        """Create an audit event row."""


@dataclass
class AuditService:
    """Service for recording audit events.

    Audit writes never break the operation being audited; failures are logged.
    """

    repository: AuditRepository

    def record_event(  # noqa: PLR0913
        self,
        actor_id: str,
        entity_type: str,
        entity_id: UUID,
        event_type: str,
        before: dict[str, object] | None,
        after: dict[str, object] | None,
    ) -> None:
        """Persist an audit event."""
        try:
            self.repository.create_event(
                actor_id=actor_id,
                entity_type=entity_type,
                entity_id=entity_id,
                event_type=event_type,
                before=before,
                after=after,
            )
        except Exception:
            _logger.exception(
                "Failed to record audit event %s for %s %s",
                event_type,
                entity_type,
                entity_id,
            )
