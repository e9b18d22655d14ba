"""Database models."""

# Import all models here so Alembic can detect them
from prepbank.models.audit import AdminAuditLog
from prepbank.models.import_report import ImportReport, ImportReportStatus
from prepbank.models.question import ANSWER_LETTERS, Question, QuestionStatus
from prepbank.models.syllabus import Subject, Topic
from prepbank.models.user import User, UserRole

__all__ = [
    "ANSWER_LETTERS",
    "AdminAuditLog",
    "ImportReport",
    "ImportReportStatus",
    "Question",
    "QuestionStatus",
    "Subject",
    "Topic",
    "User",
    "UserRole",
]
