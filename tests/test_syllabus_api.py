"""Tests for subject and topic administration."""

import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from prepbank.models.audit import AdminAuditLog
from prepbank.services.syllabus import slugify

SUBJECTS_URL = "/v1/admin/subjects"
TOPICS_URL = "/v1/admin/topics"


@pytest.mark.parametrize(
    "name,expected",
    [
        ("Mathematics", "mathematics"),
        ("English Language", "english-language"),
        ("  Further  Maths & Stats ", "further-maths-stats"),
        ("C.R.K.", "c-r-k"),
    ],
)
def test_slugify(name: str, expected: str) -> None:
    assert slugify(name) == expected


def test_create_and_list_subjects(admin_client: TestClient, db: Session) -> None:
    response = admin_client.post(SUBJECTS_URL, json={"name": "Physics", "display_order": 2})

    assert response.status_code == 201
    body = response.json()
    assert body["slug"] == "physics"
    assert body["status"] == "active"

    listed = admin_client.get(SUBJECTS_URL).json()
    assert [s["name"] for s in listed] == ["Physics"]
    entry = db.query(AdminAuditLog).one()
    assert (entry.action, entry.entity_type) == ("CREATE", "subject")


def test_duplicate_subject_is_conflict(admin_client: TestClient, syllabus) -> None:
    response = admin_client.post(SUBJECTS_URL, json={"name": "mathematics"})

    assert response.status_code == 409
    assert response.json()["error_code"] == "SUBJECT_EXISTS"


def test_subject_name_without_letters(admin_client: TestClient) -> None:
    response = admin_client.post(SUBJECTS_URL, json={"name": "---"})

    assert response.status_code == 400
    assert response.json()["error_code"] == "INVALID_NAME"


def test_list_subjects_excludes_inactive(admin_client: TestClient) -> None:
    admin_client.post(SUBJECTS_URL, json={"name": "Chemistry"})
    admin_client.post(SUBJECTS_URL, json={"name": "Latin", "status": "inactive"})

    active = admin_client.get(SUBJECTS_URL, params={"include_inactive": "false"}).json()

    assert [s["name"] for s in active] == ["Chemistry"]


def test_create_topic_and_filter_by_subject(admin_client: TestClient, syllabus) -> None:
    maths_id = str(syllabus["Mathematics"].id)

    response = admin_client.post(TOPICS_URL, json={"subject_id": maths_id, "name": "Trigonometry"})

    assert response.status_code == 201
    assert response.json()["slug"] == "trigonometry"
    names = {t["name"] for t in admin_client.get(TOPICS_URL, params={"subject_id": maths_id}).json()}
    assert names == {"Algebra", "Geometry", "Trigonometry"}


def test_duplicate_topic_is_conflict(admin_client: TestClient, syllabus) -> None:
    maths_id = str(syllabus["Mathematics"].id)

    response = admin_client.post(TOPICS_URL, json={"subject_id": maths_id, "name": "algebra"})

    assert response.status_code == 409
    assert response.json()["error_code"] == "TOPIC_EXISTS"


def test_same_topic_name_under_another_subject(admin_client: TestClient, syllabus) -> None:
    english_id = str(syllabus["English Language"].id)

    response = admin_client.post(TOPICS_URL, json={"subject_id": english_id, "name": "Algebra"})

    assert response.status_code == 201


def test_topic_for_unknown_subject(admin_client: TestClient) -> None:
    response = admin_client.post(
        TOPICS_URL, json={"subject_id": str(uuid.uuid4()), "name": "Orphan"}
    )

    assert response.status_code == 404
    assert response.json()["error_code"] == "SUBJECT_NOT_FOUND"
