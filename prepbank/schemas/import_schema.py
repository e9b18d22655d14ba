"""Pydantic schemas for CSV question imports."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from prepbank.common.pagination import PaginationMeta
from prepbank.models.import_report import ImportReportStatus
from prepbank.models.question import QuestionStatus

# Input hardening
FILENAME_MAX_LENGTH = 500
BULK_ACTION_MAX_IDS = 5000

# ============================================================================
# Requests
# ============================================================================


class ValidateImportRequest(BaseModel):
    """Body for the dry-run validation endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    csv_content: str | None = Field(default=None, alias="csvContent")


class ProcessImportRequest(BaseModel):
    """Body for the import endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    csv_content: str | None = Field(default=None, alias="csvContent")
    filename: str | None = Field(default=None, max_length=FILENAME_MAX_LENGTH)
    file_size: int | None = Field(default=None, ge=0, alias="fileSize")


class ImportReportUpdate(BaseModel):
    """Patch body; unknown status values are ignored rather than rejected."""

    filename: str | None = Field(default=None, max_length=FILENAME_MAX_LENGTH)
    status: str | None = None


class BulkActionRequest(BaseModel):
    """Report-keyed bulk action."""

    model_config = ConfigDict(populate_by_name=True)

    action: str
    question_ids: list[UUID] | None = Field(
        default=None, alias="questionIds", max_length=BULK_ACTION_MAX_IDS
    )


# ============================================================================
# Responses
# ============================================================================


class ValidationErrorOut(BaseModel):
    row: int
    field: str
    message: str
    value: Any | None = None
    code: str


class ValidateImportResponse(BaseModel):
    """Dry-run validation result."""

    model_config = ConfigDict(populate_by_name=True)

    total_rows: int = Field(alias="totalRows")
    valid_rows: int = Field(alias="validRows")
    invalid_rows: int = Field(alias="invalidRows")
    errors: list[ValidationErrorOut]
    duplicates: list[int]


class RowErrorOut(BaseModel):
    row: int | None = None
    error: str | None = None


class ProcessImportResponse(BaseModel):
    """Import result; 0 successes with N failures is a valid outcome."""

    model_config = ConfigDict(populate_by_name=True)

    report_id: UUID = Field(alias="reportId")
    total_rows: int = Field(alias="totalRows")
    successful_rows: int = Field(alias="successfulRows")
    failed_rows: int = Field(alias="failedRows")
    errors: list[RowErrorOut]


class ImportReportOut(BaseModel):
    """Import report."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    admin_id: UUID | None = None
    filename: str
    file_size_bytes: int | None = None
    total_rows: int
    successful_rows: int
    failed_rows: int
    status: ImportReportStatus
    import_type: str
    started_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime


class ImportReportDetailOut(ImportReportOut):
    """Import report including row-level error detail."""

    error_details: list[RowErrorOut] | None = None


class ImportReportListResponse(BaseModel):
    success: bool = True
    reports: list[ImportReportOut]
    pagination: PaginationMeta


class ImportReportResponse(BaseModel):
    success: bool = True
    report: ImportReportDetailOut


class DeleteReportResponse(BaseModel):
    success: bool = True
    message: str
    questions_affected: int


class QuestionOut(BaseModel):
    """Question as listed under an import report."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    subject_id: UUID
    topic_id: UUID
    question_text: str
    passage: str | None = None
    passage_id: str | None = None
    question_image_url: str | None = None
    image_alt_text: str | None = None
    image_width: int | None = None
    image_height: int | None = None
    option_a: str
    option_b: str
    option_c: str | None = None
    option_d: str | None = None
    option_e: str | None = None
    correct_answer: str
    hint: str | None = None
    solution: str | None = None
    further_study_links: list[str] | None = None
    difficulty: str | None = None
    exam_type: str | None = None
    exam_year: int | None = None
    status: QuestionStatus
    import_report_id: UUID | None = None
    created_at: datetime


class ReportQuestionsResponse(BaseModel):
    success: bool = True
    questions: list[QuestionOut]
    pagination: PaginationMeta


class BulkActionResponse(BaseModel):
    success: bool
    message: str
    affected: int
