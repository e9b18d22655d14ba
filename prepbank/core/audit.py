"""Audit logging helpers."""

from typing import Any
from uuid import UUID

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from prepbank.core.errors import get_request_id
from prepbank.core.logging import get_logger
from prepbank.models.audit import AdminAuditLog

logger = get_logger(__name__)


def _client_ip(request: Request | None) -> str | None:
    if request is None:
        return None
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else None


def log_admin_action(
    db: Session,
    admin_id: UUID,
    action: str,
    entity_type: str,
    entity_id: UUID | None = None,
    details: dict[str, Any] | None = None,
    request: Request | None = None,
) -> AdminAuditLog | None:
    """
    Write an admin audit log entry and commit it.

    Audit failures are logged and swallowed: they must never block the
    operation being audited.

    Args:
        db: Database session
        admin_id: Admin performing the action
        action: Action type (CREATE, UPDATE, DELETE)
        entity_type: Type of entity (import, question, subject, topic, user)
        entity_id: ID of the entity
        details: Before/after state or additional context
        request: FastAPI request (for IP, user agent and request_id)

    Returns:
        The audit entry, or None if it could not be written
    """
    audit_details = dict(details) if details else {}
    if request is not None:
        audit_details["request_id"] = get_request_id(request)

    entry = AdminAuditLog(
        admin_id=admin_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=audit_details or None,
        ip_address=_client_ip(request),
        user_agent=request.headers.get("user-agent") if request is not None else None,
    )
    try:
        with db.begin_nested():
            db.add(entry)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(
            "audit_write_failed",
            extra={
                "event": "audit_write_failed",
                "action": action,
                "entity_type": entity_type,
                "entity_id": str(entity_id) if entity_id else None,
                "error": str(e),
            },
        )
        return None
    return entry
