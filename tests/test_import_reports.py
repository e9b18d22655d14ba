"""Tests for import report history, report questions and bulk actions."""

import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from prepbank.models.audit import AdminAuditLog
from prepbank.models.import_report import ImportReport, ImportReportStatus
from prepbank.models.question import Question, QuestionStatus
from tests.helpers.seed import build_csv, create_question, question_row

REPORTS_URL = "/v1/admin/import/reports"


def _import(client: TestClient, rows: list[dict], filename: str = "questions.csv") -> str:
    response = client.post(
        "/v1/admin/import/process",
        json={"csvContent": build_csv(rows), "filename": filename},
    )
    assert response.status_code == 200
    return response.json()["reportId"]


@pytest.fixture
def report_id(admin_client: TestClient, syllabus) -> str:
    rows = [
        question_row(question_text="Solve 2x = 4"),
        question_row(question_text="Factorise x^2 - 1"),
        question_row(topic="Geometry", question_text="Sum of angles in a triangle"),
        question_row(year="bad"),
    ]
    return _import(admin_client, rows, "algebra.csv")


# ============================================================================
# Reports
# ============================================================================


def test_list_reports_paginates(admin_client: TestClient, syllabus) -> None:
    for i in range(3):
        _import(admin_client, [question_row()], f"file{i}.csv")

    response = admin_client.get(REPORTS_URL, params={"page": 1, "limit": 2})

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert len(data["reports"]) == 2
    assert data["pagination"] == {"total": 3, "page": 1, "limit": 2, "totalPages": 2}


def test_list_reports_status_filter(admin_client: TestClient, db: Session, report_id) -> None:
    db.add(ImportReport(filename="stuck.csv", status=ImportReportStatus.FAILED))
    db.commit()

    data = admin_client.get(REPORTS_URL, params={"status": "failed"}).json()

    assert [r["filename"] for r in data["reports"]] == ["stuck.csv"]


def test_report_detail_includes_errors(admin_client: TestClient, report_id: str) -> None:
    response = admin_client.get(f"{REPORTS_URL}/{report_id}")

    assert response.status_code == 200
    report = response.json()["report"]
    assert report["filename"] == "algebra.csv"
    assert report["status"] == "completed"
    assert report["total_rows"] == report["successful_rows"] + report["failed_rows"] == 4
    assert report["error_details"] == [
        {"row": 5, "error": "Year must be a valid 4-digit year between 1900 and 2100"}
    ]


def test_unknown_report_is_404(admin_client: TestClient, syllabus) -> None:
    response = admin_client.get(f"{REPORTS_URL}/{uuid.uuid4()}")

    assert response.status_code == 404
    assert response.json()["error_code"] == "IMPORT_REPORT_NOT_FOUND"


def test_patch_report_filename_and_status(
    admin_client: TestClient, db: Session, report_id: str
) -> None:
    response = admin_client.patch(
        f"{REPORTS_URL}/{report_id}", json={"filename": "renamed.csv", "status": "failed"}
    )

    assert response.status_code == 200
    assert response.json()["report"]["filename"] == "renamed.csv"
    assert response.json()["report"]["status"] == "failed"
    entry = db.query(AdminAuditLog).filter(AdminAuditLog.action == "UPDATE").one()
    assert entry.details["before"] == {"filename": "algebra.csv", "status": "completed"}
    assert entry.details["after"] == {"filename": "renamed.csv", "status": "failed"}


def test_patch_without_valid_fields(admin_client: TestClient, report_id: str) -> None:
    response = admin_client.patch(f"{REPORTS_URL}/{report_id}", json={"status": "exploded"})

    assert response.status_code == 400
    assert response.json()["message"] == "No valid fields to update"


def test_delete_report_unlinks_questions(
    admin_client: TestClient, db: Session, report_id: str
) -> None:
    response = admin_client.delete(f"{REPORTS_URL}/{report_id}")

    assert response.status_code == 200
    assert response.json()["questions_affected"] == 3
    db.expire_all()
    assert db.query(ImportReport).count() == 0
    assert db.query(Question).count() == 3
    assert db.query(Question).filter(Question.import_report_id.isnot(None)).count() == 0
    assert db.query(AdminAuditLog).filter(AdminAuditLog.action == "DELETE").count() == 1


def test_delete_report_with_questions(
    admin_client: TestClient, db: Session, syllabus, report_id: str
) -> None:
    manual = create_question(
        db, syllabus["Mathematics"], syllabus["topics"]["Algebra"], question_text="Manual"
    )
    db.commit()

    response = admin_client.delete(
        f"{REPORTS_URL}/{report_id}", params={"delete_questions": "true"}
    )

    assert response.status_code == 200
    db.expire_all()
    assert [q.id for q in db.query(Question).all()] == [manual.id]


# ============================================================================
# Report questions
# ============================================================================


def test_report_questions_filters(
    admin_client: TestClient, syllabus, report_id: str
) -> None:
    url = f"{REPORTS_URL}/{report_id}/questions"

    all_questions = admin_client.get(url).json()
    assert all_questions["pagination"]["total"] == 3

    geometry = syllabus["topics"]["Geometry"].id
    by_topic = admin_client.get(url, params={"topic_id": str(geometry)}).json()
    assert [q["question_text"] for q in by_topic["questions"]] == ["Sum of angles in a triangle"]

    searched = admin_client.get(url, params={"search": "FACTORISE"}).json()
    assert [q["question_text"] for q in searched["questions"]] == ["Factorise x^2 - 1"]

    drafts = admin_client.get(url, params={"status": "draft"}).json()
    assert drafts["questions"] == []


# ============================================================================
# Bulk actions
# ============================================================================


def test_bulk_archive_all(admin_client: TestClient, db: Session, report_id: str) -> None:
    response = admin_client.post(
        f"{REPORTS_URL}/{report_id}/bulk-action", json={"action": "archive"}
    )

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Successfully archived 3 questions",
        "affected": 3,
    }
    db.expire_all()
    assert {q.status for q in db.query(Question).all()} == {QuestionStatus.ARCHIVED}
    entry = db.query(AdminAuditLog).filter(AdminAuditLog.entity_type == "question").one()
    assert entry.action == "UPDATE"
    assert entry.details["questionCount"] == 3


def test_bulk_draft_subset(admin_client: TestClient, db: Session, report_id: str) -> None:
    target = db.query(Question).filter(Question.question_text == "Solve 2x = 4").one()

    response = admin_client.post(
        f"{REPORTS_URL}/{report_id}/bulk-action",
        json={"action": "draft", "questionIds": [str(target.id)]},
    )

    assert response.json()["affected"] == 1
    db.expire_all()
    statuses = {q.question_text: q.status for q in db.query(Question).all()}
    assert statuses["Solve 2x = 4"] == QuestionStatus.DRAFT
    assert statuses["Factorise x^2 - 1"] == QuestionStatus.PUBLISHED


def test_bulk_subset_ignores_questions_from_other_imports(
    admin_client: TestClient, db: Session, syllabus, report_id: str
) -> None:
    outsider = create_question(
        db, syllabus["Mathematics"], syllabus["topics"]["Algebra"], question_text="Outsider"
    )
    db.commit()

    response = admin_client.post(
        f"{REPORTS_URL}/{report_id}/bulk-action",
        json={"action": "delete", "questionIds": [str(outsider.id)]},
    )

    assert response.json() == {
        "success": True,
        "message": "No questions found to update",
        "affected": 0,
    }
    db.expire_all()
    assert db.get(Question, outsider.id) is not None


def test_bulk_delete(admin_client: TestClient, db: Session, report_id: str) -> None:
    response = admin_client.post(
        f"{REPORTS_URL}/{report_id}/bulk-action", json={"action": "delete"}
    )

    assert response.json()["message"] == "Successfully deleted 3 questions"
    db.expire_all()
    assert db.query(Question).count() == 0
    entry = db.query(AdminAuditLog).filter(AdminAuditLog.entity_type == "question").one()
    assert entry.action == "DELETE"


def test_bulk_invalid_action(admin_client: TestClient, report_id: str) -> None:
    response = admin_client.post(
        f"{REPORTS_URL}/{report_id}/bulk-action", json={"action": "shred"}
    )

    assert response.status_code == 400
    assert response.json()["error_code"] == "INVALID_ACTION"


def test_bulk_action_unknown_report(admin_client: TestClient, syllabus) -> None:
    response = admin_client.post(
        f"{REPORTS_URL}/{uuid.uuid4()}/bulk-action", json={"action": "publish"}
    )

    assert response.status_code == 404
    assert response.json()["error_code"] == "IMPORT_REPORT_NOT_FOUND"
