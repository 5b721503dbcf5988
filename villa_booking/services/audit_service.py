from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Mapping

from fastapi import Request
from sqlalchemy.orm import Session

from villa_booking.models.audit_log import AuditLog

# Guest contact details never reach the audit trail
REDACTED_KEYS = frozenset({"password", "hashed_password", "phone", "guest_phone", "email", "guest_email", "name", "guest_name"})


def _json_safe(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: "<redacted>" if k in REDACTED_KEYS else _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_json_safe(v) for v in value]
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


def _client_info(request: Request | None) -> tuple[str, str]:
    if request is None:
        return "", ""
    ip = request.client.host if request.client else ""
    return ip, request.headers.get("user-agent", "")[:255]


def write_audit_log(
    db: Session,
    *,
    actor_user_id: str | None,
    action_type: str,
    target_type: str = "",
    target_id: str = "",
    summary: str = "",
    diff_json: Mapping[str, Any] | None = None,
    request: Request | None = None,
) -> AuditLog:
    """Record an administrative or booking action in its own commit."""
    ip, user_agent = _client_info(request)
    entry = AuditLog(
        actor_user_id=actor_user_id,
        action_type=action_type,
        target_type=target_type,
        target_id=str(target_id),
        summary=summary,
        diff_json=_json_safe(dict(diff_json)) if diff_json is not None else None,
        ip_address=ip,
        user_agent=user_agent,
    )
    db.add(entry)
    db.commit()
    return entry
