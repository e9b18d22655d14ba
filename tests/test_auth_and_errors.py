"""Tests for authentication, role checks and the error envelope."""

from datetime import timedelta

from fastapi.testclient import TestClient

from prepbank.models.user import User
from tests.helpers.seed import auth_headers, build_csv, create_access_token, question_row

TEMPLATE_URL = "/v1/admin/import/template"
REPORTS_URL = "/v1/admin/import/reports"


def test_missing_token_is_unauthorized(client: TestClient) -> None:
    response = client.get(REPORTS_URL)

    assert response.status_code == 401
    body = response.json()
    assert body["error_code"] == "UNAUTHORIZED"
    assert body["request_id"]


def test_garbage_token_is_unauthorized(client: TestClient) -> None:
    response = client.get(REPORTS_URL, headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401
    assert response.json()["error_code"] == "UNAUTHORIZED"


def test_wrong_scheme_is_unauthorized(client: TestClient, admin_user: User) -> None:
    token = auth_headers(admin_user)["Authorization"].split()[1]

    response = client.get(REPORTS_URL, headers={"Authorization": f"Basic {token}"})

    assert response.status_code == 401


def test_student_is_forbidden(client: TestClient, student_user: User) -> None:
    response = client.post(
        "/v1/admin/import/validate",
        json={"csvContent": build_csv([question_row()])},
        headers=auth_headers(student_user),
    )

    assert response.status_code == 403
    assert response.json()["error_code"] == "FORBIDDEN"


def test_tutor_may_list_reports(client: TestClient, tutor_user: User) -> None:
    response = client.get(REPORTS_URL, headers=auth_headers(tutor_user))

    assert response.status_code == 200
    assert response.json()["reports"] == []


def test_admin_token_downloads_template(client: TestClient, admin_user: User) -> None:
    response = client.get(TEMPLATE_URL, headers=auth_headers(admin_user))

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    disposition = response.headers["content-disposition"]
    assert disposition.startswith('attachment; filename="prepbank_question_import_template_')
    assert disposition.endswith('.csv"')
    assert response.text.startswith("# ")


def test_request_id_is_echoed(admin_client: TestClient) -> None:
    response = admin_client.get(REPORTS_URL, headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"


def test_request_id_in_error_envelope(admin_client: TestClient) -> None:
    response = admin_client.post(
        "/v1/admin/import/validate", json={}, headers={"X-Request-ID": "req-456"}
    )

    assert response.status_code == 400
    assert response.json() == {
        "error_code": "CSV_CONTENT_REQUIRED",
        "message": "CSV content is required",
        "details": None,
        "request_id": "req-456",
    }


def test_request_validation_envelope(admin_client: TestClient) -> None:
    response = admin_client.post(f"{REPORTS_URL}/not-a-uuid/bulk-action", json={"action": "publish"})

    assert response.status_code == 422
    body = response.json()
    assert body["error_code"] == "VALIDATION_ERROR"
    assert any(d["field"].endswith("report_id") for d in body["details"])


def test_expired_token_is_unauthorized(client: TestClient, admin_user: User) -> None:
    token = create_access_token(admin_user.id, admin_user.role, expires_in=timedelta(minutes=-1))

    response = client.get(REPORTS_URL, headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["message"] == "Token has expired"


def test_non_access_token_is_unauthorized(client: TestClient, admin_user: User) -> None:
    token = create_access_token(admin_user.id, admin_user.role, token_type="refresh")

    response = client.get(REPORTS_URL, headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["message"] == "Token is not an access token"
