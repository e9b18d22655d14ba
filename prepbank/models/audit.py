"""Admin audit log model."""

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.sql import func

from prepbank.db.base import Base, JSONType


class AdminAuditLog(Base):
    """Audit trail for admin actions."""

    __tablename__ = "admin_audit_logs"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    admin_id = Column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    action = Column(String(50), nullable=False)  # CREATE, UPDATE, DELETE
    entity_type = Column(String(50), nullable=False)  # import, question, subject, topic, user
    entity_id = Column(Uuid(as_uuid=True), nullable=True)
    details = Column(JSONType, nullable=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_admin_audit_logs_admin_id", "admin_id"),
        Index("ix_admin_audit_logs_action", "action"),
        Index("ix_admin_audit_logs_entity_type", "entity_type"),
        Index("ix_admin_audit_logs_created_at", "created_at"),
    )
