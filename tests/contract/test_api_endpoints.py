"""Contract tests for the members and contributions API."""

import pytest
from fastapi.testclient import TestClient

from committee.api.app import create_app
from committee.config import Settings


@pytest.fixture
def app(directory_client):
    return create_app(Settings(_env_file=None, default_month="May"), client=directory_client)


@pytest.fixture
def client(app):
    """Create FastAPI test client."""
    return TestClient(app)


def _row(response, member_id):
    return next(row for row in response.json()["rows"] if row["member_id"] == member_id)


class TestHealthAndTranslations:
    """Test static endpoints."""

    def test_health(self, client: TestClient):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_translations_cacheable(self, client: TestClient):
        """Verify translations carry caching headers and honour If-None-Match."""
        response = client.get("/api/translations")
        assert response.status_code == 200
        assert response.headers["Cache-Control"] == "public, max-age=3600"
        assert response.json()["errors"]["load_members"] == "Failed to load users"

        etag = response.headers["ETag"]
        cached = client.get("/api/translations", headers={"If-None-Match": etag})
        assert cached.status_code == 304


class TestContributionMatrix:
    """Test /api/contributions."""

    def test_months_in_schedule_order(self, client: TestClient):
        response = client.get("/api/contributions/months")
        assert response.json() == ["May", "June", "July", "Aug", "Sep", "Oct", "Nov"]

    def test_matrix_reconciles_and_totals(self, client: TestClient, directory):
        """Test May receivers are auto-marked and split the pool."""
        response = client.get("/api/contributions", params={"month": "May"})

        assert response.status_code == 200
        data = response.json()
        assert data["month"] == "May"
        assert data["total_receivers"] == 2
        assert data["reconciled"] == 4
        assert [row["name"] for row in data["rows"]] == ["Alice", "Bob"]
        assert _row(response, "1")["total"] == 150
        assert _row(response, "2")["total"] == 150
        assert _row(response, "1")["receivable"] == 700
        assert directory.payment_calls() == [
            ("1", "1", True),
            ("2", "1", True),
            ("1", "2", True),
            ("2", "2", True),
        ]
        assert directory.members["2"]["paymentStatus"] == {"May_1": True, "May_2": True}

    def test_payer_status_flags(self, client: TestClient):
        """Test scheduled payers are settled and others are not."""
        response = client.get("/api/contributions", params={"month": "May"})

        payers = {p["member_id"]: p for p in _row(response, "1")["payers"]}
        assert payers["1"] == {
            "member_id": "1",
            "name": "Alice",
            "paid": True,
            "scheduled": True,
            "settled": True,
        }
        assert payers["3"]["paid"] is False
        assert payers["3"]["settled"] is False

    def test_second_load_reconciles_nothing(self, client: TestClient, directory):
        client.get("/api/contributions", params={"month": "May"})
        response = client.get("/api/contributions", params={"month": "May"})

        assert response.json()["reconciled"] == 0
        assert len(directory.payment_calls()) == 4

    def test_default_month(self, client: TestClient):
        response = client.get("/api/contributions")
        assert response.json()["month"] == "May"

    def test_unknown_month_rejected(self, client: TestClient):
        response = client.get("/api/contributions", params={"month": "Jan"})
        assert response.status_code == 422

    def test_roster_failure(self, client: TestClient, directory):
        """Test a failed roster fetch is a single generic error."""
        directory.fail.add(("GET", "/members"))

        response = client.get("/api/contributions", params={"month": "May"})

        assert response.status_code == 502
        assert response.json()["detail"] == {
            "error": {"code": "roster_unavailable", "message": "Failed to load users"}
        }

    def test_auto_update_failure_is_not_surfaced(self, client: TestClient, directory):
        """Test failed auto-marks are skipped and the matrix still renders."""
        directory.fail.add(("PATCH", "/members/2/payment-status"))

        response = client.get("/api/contributions", params={"month": "May"})

        assert response.status_code == 200
        assert response.json()["reconciled"] == 2
        assert _row(response, "1")["total"] == 50

    def test_refresh_refetches(self, client: TestClient, directory, member_json):
        client.get("/api/contributions", params={"month": "June"})
        directory.members["4"] = member_json("4", "Dave", ["June"], [80])

        response = client.post("/api/contributions/refresh")

        assert response.status_code == 200
        assert [row["name"] for row in response.json()["rows"]] == ["Carol", "Dave"]


class TestTogglePayment:
    """Test /api/contributions/toggle."""

    def test_toggle_marks_paid(self, client: TestClient, directory):
        """Test a non-receiver's payment adds its share to the receiver."""
        client.get("/api/contributions", params={"month": "May"})

        response = client.post(
            "/api/contributions/toggle",
            json={"payer_id": "3", "receiver_id": "1", "paid": True},
        )

        assert response.status_code == 200
        assert _row(response, "1")["total"] == 175
        assert _row(response, "2")["total"] == 150
        assert directory.members["3"]["paymentStatus"] == {"May_1": True}

    def test_toggle_without_flag_flips(self, client: TestClient, directory):
        client.get("/api/contributions", params={"month": "May"})

        client.post("/api/contributions/toggle", json={"payer_id": "3", "receiver_id": "1"})
        client.post("/api/contributions/toggle", json={"payer_id": "3", "receiver_id": "1"})

        assert directory.payment_calls()[-2:] == [("3", "1", True), ("3", "1", False)]

    def test_toggle_failure(self, client: TestClient, directory):
        """Test a rejected toggle surfaces an error and leaves state unchanged."""
        client.get("/api/contributions", params={"month": "May"})
        directory.fail.add(("PATCH", "/members/3/payment-status"))

        response = client.post(
            "/api/contributions/toggle",
            json={"payer_id": "3", "receiver_id": "1", "paid": True},
        )

        assert response.status_code == 502
        assert response.json()["detail"]["error"]["message"] == "Failed to update payment status"
        after = client.get("/api/contributions", params={"month": "May"})
        assert _row(after, "1")["total"] == 150

    def test_toggle_unknown_member(self, client: TestClient):
        response = client.post(
            "/api/contributions/toggle",
            json={"payer_id": "404", "receiver_id": "1", "paid": True},
        )

        assert response.status_code == 404
        assert response.json()["detail"]["error"]["code"] == "member_not_found"


class TestMembers:
    """Test /api/members."""

    def test_list_members(self, client: TestClient):
        response = client.get("/api/members")

        assert response.status_code == 200
        data = response.json()
        assert [m["_id"] for m in data] == ["1", "2", "3"]
        assert data[0]["bankAccountNo"] == "ACC-1"

    def test_list_members_failure(self, client: TestClient, directory):
        directory.fail.add(("GET", "/members"))

        response = client.get("/api/members")

        assert response.status_code == 502

    def test_get_member_and_form(self, client: TestClient):
        assert client.get("/api/members/2").json()["name"] == "Bob"

        form = client.get("/api/members/2/form").json()
        assert form["bankName"] == "Committee Bank"
        assert form["receivableMonths"] == ["May"]

    def test_get_unknown_member(self, client: TestClient):
        assert client.get("/api/members/404").status_code == 404

    def test_create_member(self, client: TestClient, directory):
        """Test create posts the draft and returns the refreshed roster."""
        response = client.post(
            "/api/members",
            json={
                "name": "Dave",
                "bankName": "Bank",
                "bankAccountNo": "999",
                "contribution": 80,
                "receivableMonths": ["June"],
            },
        )

        assert response.status_code == 201
        assert [m["name"] for m in response.json()] == ["Alice", "Bob", "Carol", "Dave"]
        method, path, body = directory.calls[0]
        assert (method, path) == ("POST", "/members/create")
        assert body["contributions"] == [80]

    def test_create_member_missing_name(self, client: TestClient, directory):
        response = client.post(
            "/api/members",
            json={"name": "", "bankName": "Bank", "bankAccountNo": "999"},
        )

        assert response.status_code == 422
        assert directory.calls == []

    def test_create_member_failure(self, client: TestClient, directory):
        directory.fail.add(("POST", "/members/create"))

        response = client.post(
            "/api/members",
            json={"name": "Dave", "bankName": "Bank", "bankAccountNo": "999"},
        )

        assert response.status_code == 502
        assert response.json()["detail"]["error"]["message"] == "Failed to add user"

    def test_update_member_refreshes_matrix(self, client: TestClient, directory):
        """Test an edit is visible in the next matrix without a manual refresh."""
        client.get("/api/contributions", params={"month": "June"})

        response = client.patch(
            "/api/members/1",
            json={
                "name": "Alice",
                "bankName": "Bank",
                "bankAccountNo": "001",
                "contributions": [100],
                "receivableMonths": ["June"],
            },
        )

        assert response.status_code == 200
        assert directory.members["1"]["receivableMonths"] == ["June"]
        matrix = client.get("/api/contributions", params={"month": "June"})
        assert [row["name"] for row in matrix.json()["rows"]] == ["Alice", "Carol"]

    def test_update_member_failure(self, client: TestClient):
        response = client.patch(
            "/api/members/404",
            json={"name": "Ghost", "bankName": "Bank", "bankAccountNo": "0"},
        )

        assert response.status_code == 502
        assert response.json()["detail"]["error"]["message"] == "Failed to update user"
