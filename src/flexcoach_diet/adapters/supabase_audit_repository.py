"""Supabase repository for audit events."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from flexcoach_diet.adapters.supabase_errors import execute
from flexcoach_diet.services.audit import AuditRepository

_TABLE = "audit_events"


@dataclass
class SupabaseAuditRepository(AuditRepository):
    """Appends diet plan change events to ``audit_events``.

    Plan snapshots are stored as JSON in ``before_json`` / ``after_json``.
    """

    client: Client

    def create_event(  # noqa: PLR0913
        self,
        actor_id: str,
        entity_type: str,
        entity_id: UUID,
        event_type: str,
        before: dict[str, object] | None,
        after: dict[str, object] | None,
    ) -> None:
        row = {
            "actor_id": actor_id,
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "event_type": event_type,
            "before_json": before,
            "after_json": after,
        }
        execute(self.client.table(_TABLE).insert(row), "Audit event")
