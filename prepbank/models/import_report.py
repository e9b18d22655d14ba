"""Import report model: one row per CSV import invocation."""

import uuid
from enum import Enum as PyEnum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from prepbank.db.base import Base, JSONType


class ImportReportStatus(str, PyEnum):
    """Import report status.

    The synchronous import flow only assigns PROCESSING, COMPLETED and (on an
    infrastructure failure after the report exists) FAILED. PENDING is reserved for a
    queued import path.
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ImportReport(Base):
    """Persisted summary of one CSV import; doubles as the batch handle for bulk actions."""

    __tablename__ = "import_reports"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    admin_id = Column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    filename = Column(String(500), nullable=False)
    file_size_bytes = Column(Integer, nullable=True)
    total_rows = Column(Integer, nullable=False, default=0)
    successful_rows = Column(Integer, nullable=False, default=0)
    failed_rows = Column(Integer, nullable=False, default=0)
    status = Column(
        Enum(
            ImportReportStatus,
            name="import_report_status",
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        default=ImportReportStatus.PENDING,
    )
    error_details = Column(JSONType, nullable=True)  # [{row, error}]
    import_type = Column(String(50), nullable=False, default="questions")
    started_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    admin = relationship("User")
    questions = relationship("Question", back_populates="import_report", passive_deletes=True)

    __table_args__ = (
        Index("ix_import_reports_admin_id", "admin_id"),
        Index("ix_import_reports_status", "status"),
        Index("ix_import_reports_created_at", "created_at"),
    )
