"""Import report lifecycle and report-keyed question management."""

from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from fastapi import status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from prepbank.common.pagination import PaginationParams
from prepbank.core.app_exceptions import raise_app_error, raise_not_found
from prepbank.core.config import settings
from prepbank.core.logging import get_logger
from prepbank.models.import_report import ImportReport, ImportReportStatus
from prepbank.models.question import Question, QuestionStatus

logger = get_logger(__name__)

BULK_ACTIONS: dict[str, QuestionStatus | None] = {
    "publish": QuestionStatus.PUBLISHED,
    "archive": QuestionStatus.ARCHIVED,
    "draft": QuestionStatus.DRAFT,
    "delete": None,
}

_ACTION_PAST_TENSE = {
    "publish": "published",
    "archive": "archived",
    "draft": "moved to draft",
    "delete": "deleted",
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def report_snapshot(report: ImportReport) -> dict[str, Any]:
    """Fields recorded in audit before/after details."""
    return {
        "filename": report.filename,
        "status": report.status.value if report.status else None,
    }


# ============================================================================
# Lifecycle
# ============================================================================


def start_report(
    db: Session,
    admin_id: UUID | None,
    filename: str,
    file_size: int | None = None,
) -> ImportReport:
    """Create a report in PROCESSING and commit it before any row is written."""
    report = ImportReport(
        admin_id=admin_id,
        filename=filename,
        file_size_bytes=file_size,
        status=ImportReportStatus.PROCESSING,
        import_type="questions",
        started_at=_now(),
    )
    db.add(report)
    db.commit()
    db.refresh(report)
    return report


def complete_report(
    db: Session,
    report: ImportReport,
    successful_rows: int,
    failed_rows: int,
    errors: list[dict[str, Any]],
) -> ImportReport:
    """
    Mark a report COMPLETED with its final counts.

    total_rows is derived from the two counts. Row errors beyond
    IMPORT_ERROR_DETAILS_CAP are dropped from error_details; the counts are kept whole.
    """
    cap = settings.IMPORT_ERROR_DETAILS_CAP
    report.successful_rows = successful_rows
    report.failed_rows = failed_rows
    report.total_rows = successful_rows + failed_rows
    report.error_details = errors[:cap] if errors else None
    report.status = ImportReportStatus.COMPLETED
    report.completed_at = _now()
    db.commit()
    db.refresh(report)
    return report


def fail_report(db: Session, report_id: UUID, message: str) -> None:
    """Best-effort transition to FAILED after an infrastructure error."""
    try:
        db.rollback()
        report = db.get(ImportReport, report_id)
        if report is None:
            return
        report.status = ImportReportStatus.FAILED
        report.error_details = [{"row": None, "error": message}]
        report.completed_at = _now()
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(
            "import_report_fail_write_failed",
            extra={
                "event": "import_report_fail_write_failed",
                "import_report_id": str(report_id),
                "error": str(e),
            },
        )


# ============================================================================
# Queries
# ============================================================================


def get_report(db: Session, report_id: UUID) -> ImportReport:
    """Load a report or raise 404."""
    report = db.get(ImportReport, report_id)
    if report is None:
        raise_not_found("IMPORT_REPORT_NOT_FOUND", "Import report", report_id=report_id)
    return report


def list_reports(
    db: Session,
    params: PaginationParams,
    status_filter: ImportReportStatus | None = None,
) -> tuple[list[ImportReport], int]:
    """Newest-first page of reports plus the total count."""
    query = db.query(ImportReport)
    if status_filter is not None:
        query = query.filter(ImportReport.status == status_filter)
    total = query.count()
    reports = (
        query.order_by(ImportReport.created_at.desc(), ImportReport.id)
        .offset(params.offset)
        .limit(params.limit)
        .all()
    )
    return reports, total


def list_report_questions(
    db: Session,
    report_id: UUID,
    params: PaginationParams,
    status_filter: QuestionStatus | None = None,
    subject_id: UUID | None = None,
    topic_id: UUID | None = None,
    search: str | None = None,
) -> tuple[list[Question], int]:
    """Questions created by one import, with optional filters."""
    query = db.query(Question).filter(Question.import_report_id == report_id)
    if status_filter is not None:
        query = query.filter(Question.status == status_filter)
    if subject_id is not None:
        query = query.filter(Question.subject_id == subject_id)
    if topic_id is not None:
        query = query.filter(Question.topic_id == topic_id)
    if search and search.strip():
        query = query.filter(Question.question_text.ilike(f"%{search.strip()}%"))
    total = query.count()
    questions = (
        query.order_by(Question.created_at.desc(), Question.id)
        .offset(params.offset)
        .limit(params.limit)
        .all()
    )
    return questions, total


# ============================================================================
# Mutations
# ============================================================================


def update_report(
    db: Session,
    report: ImportReport,
    filename: str | None = None,
    new_status: ImportReportStatus | None = None,
) -> tuple[dict[str, Any], dict[str, Any]]:
    """
    Rename a report or correct its status.

    Returns:
        (before, after) snapshots for the audit entry
    """
    updates: dict[str, Any] = {}
    if filename is not None and filename.strip():
        updates["filename"] = filename.strip()
    if new_status is not None:
        updates["status"] = new_status
    if not updates:
        raise_app_error(
            status.HTTP_400_BAD_REQUEST,
            "NO_VALID_FIELDS",
            "No valid fields to update",
        )

    before = report_snapshot(report)
    for key, value in updates.items():
        setattr(report, key, value)
    db.commit()
    db.refresh(report)
    return before, report_snapshot(report)


def delete_report(db: Session, report: ImportReport, delete_questions: bool = False) -> int:
    """
    Delete a report.

    With ``delete_questions`` the questions it created are deleted too; otherwise they
    are kept and unlinked.

    Returns:
        Number of questions deleted or unlinked
    """
    questions = db.query(Question).filter(Question.import_report_id == report.id)
    if delete_questions:
        affected = questions.delete(synchronize_session=False)
    else:
        affected = questions.update({Question.import_report_id: None}, synchronize_session=False)
    db.delete(report)
    db.commit()
    return affected


def apply_bulk_action(
    db: Session,
    report_id: UUID,
    action: str,
    question_ids: list[UUID] | None = None,
) -> tuple[int, str]:
    """
    Apply a lifecycle action to every question of an import (or a subset).

    Args:
        db: Database session
        report_id: Import report acting as the batch handle
        action: publish, archive, draft or delete
        question_ids: Optional subset; ids outside the report are ignored

    Returns:
        (affected, message)
    """
    if action not in BULK_ACTIONS:
        raise_app_error(
            status.HTTP_400_BAD_REQUEST,
            "INVALID_ACTION",
            f"Invalid action. Must be one of: {', '.join(BULK_ACTIONS)}",
            {"action": action},
        )
    get_report(db, report_id)

    query = db.query(Question).filter(Question.import_report_id == report_id)
    if question_ids:
        query = query.filter(Question.id.in_(question_ids))

    target_status = BULK_ACTIONS[action]
    if target_status is None:
        affected = query.delete(synchronize_session=False)
    else:
        affected = query.update(
            {Question.status: target_status, Question.updated_at: _now()},
            synchronize_session=False,
        )
    db.commit()

    if affected == 0:
        return 0, "No questions found to update"
    return affected, f"Successfully {_ACTION_PAST_TENSE[action]} {affected} questions"
