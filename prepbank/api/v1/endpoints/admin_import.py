"""Admin import endpoints: CSV validation, import, reports and bulk actions."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from prepbank.common.pagination import PaginationMeta, PaginationParams, pagination_params
from prepbank.core.app_exceptions import raise_app_error
from prepbank.core.audit import log_admin_action
from prepbank.core.dependencies import require_admin
from prepbank.db.session import get_db
from prepbank.models.import_report import ImportReportStatus
from prepbank.models.question import QuestionStatus
from prepbank.models.user import User
from prepbank.schemas.import_schema import (
    BulkActionRequest,
    BulkActionResponse,
    DeleteReportResponse,
    ImportReportDetailOut,
    ImportReportListResponse,
    ImportReportOut,
    ImportReportResponse,
    ImportReportUpdate,
    ProcessImportRequest,
    ProcessImportResponse,
    QuestionOut,
    ReportQuestionsResponse,
    ValidateImportRequest,
    ValidateImportResponse,
)
from prepbank.services import import_reports
from prepbank.services.importer import (
    build_template,
    process_import,
    template_filename,
    validate_csv,
)

router = APIRouter(prefix="/admin/import", tags=["Admin - Import"])


def _require_csv_content(csv_content: str | None) -> str:
    if not csv_content or not csv_content.strip():
        raise_app_error(
            status.HTTP_400_BAD_REQUEST,
            "CSV_CONTENT_REQUIRED",
            "CSV content is required",
        )
    return csv_content


# ============================================================================
# Import
# ============================================================================


@router.post("/validate", response_model=ValidateImportResponse)
async def validate_import(
    payload: ValidateImportRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> ValidateImportResponse:
    """Dry-run: parse, resolve and validate without writing anything."""
    csv_content = _require_csv_content(payload.csv_content)
    result = validate_csv(db, csv_content)
    return ValidateImportResponse.model_validate(result)


@router.post("/process", response_model=ProcessImportResponse)
async def process_csv_import(
    payload: ProcessImportRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> ProcessImportResponse:
    """Import valid rows; invalid rows are reported, never raised."""
    csv_content = _require_csv_content(payload.csv_content)
    if not payload.filename or not payload.filename.strip():
        raise_app_error(status.HTTP_400_BAD_REQUEST, "FILENAME_REQUIRED", "Filename is required")

    result = process_import(
        db,
        current_user,
        csv_content,
        payload.filename.strip(),
        payload.file_size,
        request=request,
    )
    return ProcessImportResponse.model_validate(result)


@router.get("/template")
async def download_template(
    current_user: User = Depends(require_admin),
) -> Response:
    """Download the CSV template with instructions and example rows."""
    return Response(
        content=build_template(),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{template_filename()}"'},
    )


# ============================================================================
# Reports
# ============================================================================


@router.get("/reports", response_model=ImportReportListResponse)
async def list_import_reports(
    params: PaginationParams = Depends(pagination_params),
    status_filter: Annotated[ImportReportStatus | None, Query(alias="status")] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> ImportReportListResponse:
    """List import reports, newest first."""
    reports, total = import_reports.list_reports(db, params, status_filter)
    return ImportReportListResponse(
        reports=[ImportReportOut.model_validate(r) for r in reports],
        pagination=PaginationMeta.build(params, total),
    )


@router.get("/reports/{report_id}", response_model=ImportReportResponse)
async def get_import_report(
    report_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> ImportReportResponse:
    """Get report details including row errors."""
    report = import_reports.get_report(db, report_id)
    return ImportReportResponse(report=ImportReportDetailOut.model_validate(report))


@router.patch("/reports/{report_id}", response_model=ImportReportResponse)
async def update_import_report(
    report_id: UUID,
    payload: ImportReportUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> ImportReportResponse:
    """Rename a report or correct its status."""
    report = import_reports.get_report(db, report_id)

    new_status = None
    if payload.status is not None:
        try:
            new_status = ImportReportStatus(payload.status)
        except ValueError:
            new_status = None

    before, after = import_reports.update_report(db, report, payload.filename, new_status)
    log_admin_action(
        db,
        admin_id=current_user.id,
        action="UPDATE",
        entity_type="import",
        entity_id=report_id,
        details={"before": before, "after": after},
        request=request,
    )
    return ImportReportResponse(report=ImportReportDetailOut.model_validate(report))


@router.delete("/reports/{report_id}", response_model=DeleteReportResponse)
async def delete_import_report(
    report_id: UUID,
    request: Request,
    delete_questions: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> DeleteReportResponse:
    """Delete a report; its questions are deleted or unlinked."""
    report = import_reports.get_report(db, report_id)
    filename = report.filename
    affected = import_reports.delete_report(db, report, delete_questions)

    log_admin_action(
        db,
        admin_id=current_user.id,
        action="DELETE",
        entity_type="import",
        entity_id=report_id,
        details={
            "filename": filename,
            "deleteQuestions": delete_questions,
            "questionsAffected": affected,
        },
        request=request,
    )
    verb = "deleted" if delete_questions else "unlinked"
    return DeleteReportResponse(
        message=f"Import report deleted; {affected} questions {verb}",
        questions_affected=affected,
    )


@router.get("/reports/{report_id}/questions", response_model=ReportQuestionsResponse)
async def list_import_report_questions(
    report_id: UUID,
    params: PaginationParams = Depends(pagination_params),
    status_filter: Annotated[QuestionStatus | None, Query(alias="status")] = None,
    subject_id: UUID | None = None,
    topic_id: UUID | None = None,
    search: Annotated[str | None, Query(max_length=200)] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> ReportQuestionsResponse:
    """Questions created by one import."""
    import_reports.get_report(db, report_id)
    questions, total = import_reports.list_report_questions(
        db,
        report_id,
        params,
        status_filter=status_filter,
        subject_id=subject_id,
        topic_id=topic_id,
        search=search,
    )
    return ReportQuestionsResponse(
        questions=[QuestionOut.model_validate(q) for q in questions],
        pagination=PaginationMeta.build(params, total),
    )


@router.post("/reports/{report_id}/bulk-action", response_model=BulkActionResponse)
async def bulk_action(
    report_id: UUID,
    payload: BulkActionRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> BulkActionResponse:
    """Publish, archive, draft or delete the questions of an import."""
    affected, message = import_reports.apply_bulk_action(
        db, report_id, payload.action, payload.question_ids
    )

    if affected:
        log_admin_action(
            db,
            admin_id=current_user.id,
            action="DELETE" if payload.action == "delete" else "UPDATE",
            entity_type="question",
            entity_id=None,
            details={
                "bulkAction": payload.action,
                "importReportId": str(report_id),
                "questionCount": affected,
                "questionIds": (
                    [str(q) for q in payload.question_ids] if payload.question_ids else None
                ),
            },
            request=request,
        )
    return BulkActionResponse(success=True, message=message, affected=affected)
