"""Import orchestration: parse, resolve, validate, write, report."""

from typing import Any

from fastapi import Request, status
from sqlalchemy.orm import Session

from prepbank.core.app_exceptions import AppError, raise_app_error
from prepbank.core.audit import log_admin_action
from prepbank.core.config import settings
from prepbank.core.logging import get_logger
from prepbank.models.question import QuestionStatus
from prepbank.models.user import User
from prepbank.services import import_reports
from prepbank.services.importer.csv_parser import CSVParseError, CSVParser
from prepbank.services.importer.import_row import ImportRow
from prepbank.services.importer.reference_resolver import Resolution
from prepbank.services.importer.validators import QuestionValidator, ValidationError
from prepbank.services.importer.writer import QuestionWriter, WritableRow, outcome_errors

logger = get_logger(__name__)


def parse_rows(csv_content: str) -> list[ImportRow]:
    """Parse CSV text into rows; structural errors become a 400 CSV_PARSE_ERROR."""
    try:
        parsed = CSVParser().parse_or_raise(csv_content)
    except CSVParseError as e:
        raise AppError(
            status_code=status.HTTP_400_BAD_REQUEST,
            code="CSV_PARSE_ERROR",
            message="CSV parsing error",
            details=[issue.to_dict() for issue in e.errors],
        ) from e

    rows = [ImportRow.from_record(number, record) for number, record in parsed.rows]
    if len(rows) > settings.IMPORT_MAX_ROWS:
        raise_app_error(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "VALIDATION_LIMIT_EXCEEDED",
            "Import row count exceeds maximum allowed",
            {"limit": settings.IMPORT_MAX_ROWS, "rows": len(rows)},
        )
    return rows


def validate_rows(
    db: Session, rows: list[ImportRow]
) -> list[tuple[ImportRow, list[ValidationError], Resolution]]:
    """Run the validator over every row in file order."""
    validator = QuestionValidator.for_rows(db, rows)
    results = []
    for row in rows:
        errors, resolution = validator.validate(row)
        results.append((row, errors, resolution))
    return results


def validate_csv(db: Session, csv_content: str) -> dict[str, Any]:
    """
    Dry-run validation. Nothing is written.

    Returns:
        {totalRows, validRows, invalidRows, errors, duplicates}
    """
    rows = parse_rows(csv_content)
    results = validate_rows(db, rows)

    errors: list[ValidationError] = []
    duplicates: list[int] = []
    invalid_rows = 0
    for row, row_errors, _resolution in results:
        if row_errors:
            invalid_rows += 1
            errors.extend(row_errors)
        if QuestionValidator.is_duplicate(row_errors):
            duplicates.append(row.row_number)

    errors.sort(key=lambda e: e.row)
    return {
        "totalRows": len(rows),
        "validRows": len(rows) - invalid_rows,
        "invalidRows": invalid_rows,
        "errors": [e.to_dict() for e in errors],
        "duplicates": duplicates,
    }


def process_import(
    db: Session,
    admin: User,
    csv_content: str,
    filename: str,
    file_size: int | None = None,
    request: Request | None = None,
) -> dict[str, Any]:
    """
    Import questions from CSV.

    Invalid rows are skipped and reported; valid rows are written in committed
    batches. The report is created before any row is attempted and completed once at
    the end.

    Returns:
        {reportId, totalRows, successfulRows, failedRows, errors}
    """
    rows = parse_rows(csv_content)

    report = import_reports.start_report(db, admin.id, filename, file_size)
    report_id = report.id
    logger.info(
        "import_started",
        extra={
            "event": "import_started",
            "import_report_id": str(report_id),
            "admin_id": str(admin.id),
            "filename": filename,
            "rows": len(rows),
        },
    )

    try:
        results = validate_rows(db, rows)

        row_errors: list[dict[str, Any]] = []
        writable: list[WritableRow] = []
        for row, errors, resolution in results:
            if errors:
                row_errors.append(
                    {"row": row.row_number, "error": "; ".join(e.message for e in errors)}
                )
            else:
                writable.append(WritableRow(row, resolution.subject_id, resolution.topic_id))

        writer = QuestionWriter(
            db,
            created_by=admin.id,
            import_report_id=report_id,
            batch_size=settings.IMPORT_BATCH_SIZE,
            status=QuestionStatus(settings.IMPORT_QUESTION_STATUS),
        )
        write_result = writer.write(writable)

        row_errors.extend(outcome_errors(write_result.outcomes))
        row_errors.sort(key=lambda e: e["row"])
        successful = write_result.successful
        failed = len(rows) - successful

        report = import_reports.complete_report(db, report, successful, failed, row_errors)
    except Exception as e:
        logger.error(
            "import_failed",
            extra={
                "event": "import_failed",
                "import_report_id": str(report_id),
                "error": str(e),
            },
            exc_info=True,
        )
        import_reports.fail_report(db, report_id, str(e))
        raise AppError(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            code="INTERNAL_ERROR",
            message="Import failed",
            details={"report_id": str(report_id)},
        ) from e

    logger.info(
        "import_completed",
        extra={
            "event": "import_completed",
            "import_report_id": str(report_id),
            "total_rows": report.total_rows,
            "successful_rows": report.successful_rows,
            "failed_rows": report.failed_rows,
            "batches": write_result.batches,
        },
    )

    log_admin_action(
        db,
        admin_id=admin.id,
        action="CREATE",
        entity_type="import",
        entity_id=report_id,
        details={
            "filename": filename,
            "totalRows": report.total_rows,
            "successfulRows": report.successful_rows,
            "failedRows": report.failed_rows,
            "hasErrors": bool(row_errors),
        },
        request=request,
    )

    return {
        "reportId": report_id,
        "totalRows": report.total_rows,
        "successfulRows": report.successful_rows,
        "failedRows": report.failed_rows,
        "errors": row_errors,
    }
