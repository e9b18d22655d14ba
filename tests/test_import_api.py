"""Tests for the CSV validate and process endpoints."""

import uuid

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from prepbank.core.config import settings
from prepbank.models.audit import AdminAuditLog
from prepbank.models.import_report import ImportReport, ImportReportStatus
from prepbank.models.question import Question, QuestionStatus
from tests.helpers.seed import build_csv, create_question, question_row

VALIDATE_URL = "/v1/admin/import/validate"
PROCESS_URL = "/v1/admin/import/process"


def _process(client: TestClient, rows: list[dict], filename: str = "questions.csv"):
    content = build_csv(rows)
    return client.post(
        PROCESS_URL,
        json={"csvContent": content, "filename": filename, "fileSize": len(content)},
    )


# ============================================================================
# Validate
# ============================================================================


def test_validate_reports_counts_and_sorted_errors(
    admin_client: TestClient, db: Session, syllabus
) -> None:
    rows = [
        question_row(),
        question_row(year="99", correct_answer="F"),
        question_row(subject="Physics"),
        question_row(),
    ]
    response = admin_client.post(VALIDATE_URL, json={"csvContent": build_csv(rows)})

    assert response.status_code == 200
    data = response.json()
    assert data["totalRows"] == 4
    assert data["validRows"] == 2
    assert data["invalidRows"] == 2
    assert [e["row"] for e in data["errors"]] == sorted(e["row"] for e in data["errors"])
    assert {(e["row"], e["field"]) for e in data["errors"]} == {
        (3, "year"),
        (3, "correct_answer"),
        (4, "subject"),
    }
    assert data["duplicates"] == []
    assert db.query(Question).count() == 0
    assert db.query(ImportReport).count() == 0


def test_validate_lists_duplicate_rows(admin_client: TestClient, db: Session, syllabus) -> None:
    create_question(
        db, syllabus["Mathematics"], syllabus["topics"]["Algebra"], question_text="Stored one"
    )
    db.commit()
    rows = [
        question_row(question_text="Fresh question"),
        question_row(question_text="fresh QUESTION "),
        question_row(question_text="stored one"),
    ]

    data = admin_client.post(VALIDATE_URL, json={"csvContent": build_csv(rows)}).json()

    assert data["duplicates"] == [3, 4]
    assert {e["code"] for e in data["errors"]} == {"DUPLICATE_IN_FILE", "DUPLICATE_IN_DATABASE"}


def test_validate_requires_csv_content(admin_client: TestClient) -> None:
    response = admin_client.post(VALIDATE_URL, json={})

    assert response.status_code == 400
    assert response.json()["error_code"] == "CSV_CONTENT_REQUIRED"


def test_structural_error_rejects_whole_file(admin_client: TestClient, syllabus) -> None:
    content = build_csv([question_row()]) + "Mathematics,Algebra,extra,cells\n"

    response = admin_client.post(VALIDATE_URL, json={"csvContent": content})

    assert response.status_code == 400
    body = response.json()
    assert body["error_code"] == "CSV_PARSE_ERROR"
    assert body["details"][0]["code"] == "TooFewFields"
    assert body["details"][0]["row"] == 3


# ============================================================================
# Process
# ============================================================================


def test_three_valid_rows_import(admin_client: TestClient, db: Session, syllabus) -> None:
    response = _process(admin_client, [question_row() for _ in range(3)])

    assert response.status_code == 200
    data = response.json()
    assert data["totalRows"] == 3
    assert data["successfulRows"] == 3
    assert data["failedRows"] == 0
    assert data["errors"] == []

    report = db.get(ImportReport, uuid.UUID(data["reportId"]))
    assert report.status == ImportReportStatus.COMPLETED
    assert report.total_rows == 3
    assert report.completed_at is not None
    questions = db.query(Question).filter(Question.import_report_id == report.id).all()
    assert len(questions) == 3
    assert all(q.status == QuestionStatus.PUBLISHED for q in questions)


def test_invalid_answer_letter_fails_only_that_row(
    admin_client: TestClient, db: Session, syllabus
) -> None:
    rows = [question_row(), question_row(correct_answer="F"), question_row()]

    data = _process(admin_client, rows).json()

    assert data["successfulRows"] == 2
    assert data["failedRows"] == 1
    assert data["errors"] == [
        {"row": 3, "error": "Correct answer must be one of: A, B, C, D, E"}
    ]
    assert db.query(Question).count() == 2


def test_image_without_alt_text_is_rejected(
    admin_client: TestClient, db: Session, syllabus
) -> None:
    rows = [question_row(question_image_url="https://example.com/diagram.png")]

    validation = admin_client.post(VALIDATE_URL, json={"csvContent": build_csv(rows)}).json()
    assert validation["errors"][0]["field"] == "image_alt_text"

    data = _process(admin_client, rows).json()
    assert data["successfulRows"] == 0
    assert data["failedRows"] == 1
    assert "Alt text is required" in data["errors"][0]["error"]


def test_subject_resolves_by_slug(admin_client: TestClient, db: Session, syllabus) -> None:
    data = _process(admin_client, [question_row(subject="mathematics", topic="algebra")]).json()

    assert data["successfulRows"] == 1
    question = db.query(Question).one()
    assert question.subject_id == syllabus["Mathematics"].id


def test_case_and_whitespace_duplicate_imports_first_only(
    admin_client: TestClient, db: Session, syllabus
) -> None:
    rows = [
        question_row(question_text="What is the capital of Nigeria?"),
        question_row(question_text="  WHAT IS THE CAPITAL OF NIGERIA?  "),
    ]

    data = _process(admin_client, rows).json()

    assert data["successfulRows"] == 1
    assert data["errors"] == [{"row": 3, "error": "Duplicate question text found in file"}]
    assert db.query(Question).one().question_text == "What is the capital of Nigeria?"


def test_all_rows_failing_still_completes(admin_client: TestClient, db: Session, syllabus) -> None:
    rows = [question_row(exam_type="SAT"), question_row(topic="Calculus")]

    response = _process(admin_client, rows)

    assert response.status_code == 200
    data = response.json()
    assert data["successfulRows"] == 0
    assert data["failedRows"] == data["totalRows"] == 2
    report = db.query(ImportReport).one()
    assert report.status == ImportReportStatus.COMPLETED
    assert report.error_details == data["errors"]


def test_invalid_row_messages_are_joined(admin_client: TestClient, syllabus) -> None:
    data = _process(admin_client, [question_row(exam_type="SAT", year="20")]).json()

    assert data["errors"][0]["error"] == (
        "Exam type must be one of: WAEC, JAMB, NECO, GCE; "
        "Year must be a valid 4-digit year between 1900 and 2100"
    )


def test_process_writes_audit_entry(
    admin_client: TestClient, db: Session, syllabus, admin_user
) -> None:
    data = _process(admin_client, [question_row(), question_row(year="x")], "maths.csv").json()

    entry = db.query(AdminAuditLog).one()
    assert entry.action == "CREATE"
    assert entry.entity_type == "import"
    assert str(entry.entity_id) == data["reportId"]
    assert entry.admin_id == admin_user.id
    assert entry.details["filename"] == "maths.csv"
    assert entry.details["successfulRows"] == 1
    assert entry.details["failedRows"] == 1
    assert entry.details["hasErrors"] is True
    assert entry.details["request_id"]
    assert entry.user_agent == "testclient"


def test_process_requires_filename(admin_client: TestClient, syllabus) -> None:
    response = admin_client.post(PROCESS_URL, json={"csvContent": build_csv([question_row()])})

    assert response.status_code == 400
    assert response.json()["error_code"] == "FILENAME_REQUIRED"


def test_process_parse_error_writes_nothing(
    admin_client: TestClient, db: Session, syllabus
) -> None:
    content = 'subject,topic\n"Mathematics,Algebra\n'

    response = admin_client.post(PROCESS_URL, json={"csvContent": content, "filename": "x.csv"})

    assert response.status_code == 400
    assert response.json()["error_code"] == "CSV_PARSE_ERROR"
    assert db.query(ImportReport).count() == 0


def test_row_cap(admin_client: TestClient, db: Session, syllabus, monkeypatch) -> None:
    monkeypatch.setattr(settings, "IMPORT_MAX_ROWS", 2)

    response = _process(admin_client, [question_row() for _ in range(3)])

    assert response.status_code == 422
    assert response.json()["error_code"] == "VALIDATION_LIMIT_EXCEEDED"
    assert db.query(ImportReport).count() == 0


def test_batches_smaller_than_file(
    admin_client: TestClient, db: Session, syllabus, monkeypatch
) -> None:
    monkeypatch.setattr(settings, "IMPORT_BATCH_SIZE", 2)

    data = _process(admin_client, [question_row() for _ in range(5)]).json()

    assert data["successfulRows"] == 5
    assert db.query(Question).count() == 5


def test_import_status_setting(
    admin_client: TestClient, db: Session, syllabus, monkeypatch
) -> None:
    monkeypatch.setattr(settings, "IMPORT_QUESTION_STATUS", "draft")

    _process(admin_client, [question_row()])

    assert db.query(Question).one().status == QuestionStatus.DRAFT


def test_infrastructure_failure_marks_report_failed(
    admin_client: TestClient, db: Session, syllabus, monkeypatch
) -> None:
    from prepbank.services.importer import pipeline

    def boom(*args, **kwargs):
        raise RuntimeError("database went away")

    monkeypatch.setattr(pipeline, "validate_rows", boom)

    response = _process(admin_client, [question_row()])

    assert response.status_code == 500
    assert response.json()["error_code"] == "INTERNAL_ERROR"
    report = db.query(ImportReport).one()
    assert report.status == ImportReportStatus.FAILED
    assert report.error_details == [{"row": None, "error": "database went away"}]
