from __future__ import annotations

from typing import Optional

from blood.models import ActionAuditLog


def record(
    action: str,
    entity_type: str,
    entity_id: int,
    *,
    bloodgroup: str = "",
    units: int = 0,
    status_before: str = "",
    status_after: str = "",
    actor=None,
    notes: str = "",
    payload: Optional[dict] = None,
) -> ActionAuditLog:
    """Append an audit row; callers run this inside their own transaction."""

    actor_user = actor if getattr(actor, "is_authenticated", False) else None
    return ActionAuditLog.objects.create(
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        bloodgroup=bloodgroup,
        units=units,
        status_before=status_before,
        status_after=status_after,
        actor=actor_user,
        actor_username=actor_user.get_username() if actor_user else "",
        notes=(notes or "")[:500],
        payload=payload,
    )
