"""Tests for the HTTP surface."""

from tests.conftest import ADMIN_TOKEN

VALIDATE_URL = "/api/v1/transitions/validate"
JOIN_CHECK_URL = "/api/v1/video/join-check"
CONSISTENCY_URL = "/api/v1/consistency/check"


class TestValidateEndpoint:
    """POST /transitions/validate."""

    def test_valid_transition(self, client):
        response = client.post(
            VALIDATE_URL,
            json={
                "entity_type": "session",
                "current_state": "payment_pending",
                "new_state": "paid",
                "context": {"paymentState": "confirmed"},
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["valid"] is True
        assert body["transition"] == "payment_pending → paid"
        assert body["enforcement_level"] == "strict"

    def test_sync_violation_is_conflict(self, client):
        response = client.post(
            VALIDATE_URL,
            json={
                "entity_type": "session",
                "current_state": "paid",
                "new_state": "ready",
                "context": {"paymentState": "pending"},
            },
        )

        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["code"] == "SYNC_VIOLATION"
        assert detail["invariant"] == "session_requires_confirmed_payment"
        assert detail["message"] == "Your payment hasn't been confirmed yet."

    def test_forbidden_edge_is_conflict(self, client):
        response = client.post(
            VALIDATE_URL,
            json={"entity_type": "payment", "current_state": "confirmed", "new_state": "pending"},
        )

        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "FORBIDDEN_EDGE"

    def test_unknown_state_is_unprocessable(self, client):
        response = client.post(
            VALIDATE_URL,
            json={"entity_type": "payment", "current_state": "settled", "new_state": "confirmed"},
        )

        assert response.status_code == 422
        assert response.json()["detail"]["fields"] == ["currentState"]

    def test_misspelled_context_key_is_unprocessable(self, client):
        response = client.post(
            VALIDATE_URL,
            json={
                "entity_type": "session",
                "current_state": "payment_pending",
                "new_state": "paid",
                "context": {"paymentstate": "failed"},
            },
        )

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["code"] == "UNKNOWN_STATE"
        assert detail["fields"] == ["paymentstate"]

    def test_access_denied_is_forbidden(self, client):
        response = client.post(
            VALIDATE_URL,
            json={
                "entity_type": "video",
                "current_state": "not_started",
                "new_state": "waiting_for_participants",
                "context": {"sessionState": "paid", "paymentState": "confirmed", "formsComplete": True},
            },
        )

        assert response.status_code == 403
        assert response.json()["detail"]["fields"] == ["sessionState"]

    def test_warn_mode_returns_warning(self, client, enforcer):
        enforcer.set_level("warn", "rollout", "tests", admin=True)

        response = client.post(
            VALIDATE_URL,
            json={"entity_type": "payment", "current_state": "refunded", "new_state": "pending"},
        )

        assert response.status_code == 200
        assert response.json()["enforcement_level"] == "warn"
        assert response.json()["warning"]

    def test_request_id_header(self, client):
        response = client.post(
            VALIDATE_URL,
            json={"entity_type": "payment", "current_state": "pending", "new_state": "initiated"},
            headers={"X-Request-ID": "req-42"},
        )

        assert response.headers["X-Request-ID"] == "req-42"
        assert "X-Response-Time" in response.headers


class TestJoinCheckEndpoint:
    """POST /video/join-check."""

    def test_can_join(self, client, ready_context):
        response = client.post(JOIN_CHECK_URL, json={"context": ready_context})

        assert response.status_code == 200
        assert response.json() == {"can_join": True, "missing": [], "message": None}

    def test_forms_incomplete(self, client, ready_context):
        response = client.post(
            JOIN_CHECK_URL, json={"context": {**ready_context, "formsComplete": False}}
        )

        body = response.json()
        assert body["can_join"] is False
        assert body["missing"] == ["formsComplete"]
        assert body["message"] == "Complete your intake form first."

    def test_staying_not_started_is_not_a_join(self, client):
        """A not_started target never grants access, whatever the context."""
        response = client.post(
            JOIN_CHECK_URL,
            json={
                "current_video_state": "not_started",
                "target_video_state": "not_started",
                "context": {
                    "paymentState": "pending",
                    "sessionState": "requested",
                    "formsComplete": False,
                },
            },
        )

        body = response.json()
        assert response.status_code == 200
        assert body["can_join"] is False
        assert body["missing"] == ["sessionState", "paymentState", "formsComplete"]
        assert body["message"] == "This action is not currently permitted."

    def test_string_forms_flag_is_rejected(self, client, ready_context):
        response = client.post(
            JOIN_CHECK_URL, json={"context": {**ready_context, "formsComplete": "yes"}}
        )

        assert response.status_code == 422

    def test_call_already_ended(self, client, ready_context):
        response = client.post(
            JOIN_CHECK_URL,
            json={
                "current_video_state": "ended",
                "target_video_state": "active",
                "context": ready_context,
            },
        )

        body = response.json()
        assert body["can_join"] is False
        assert body["missing"] == []
        assert "already closed" in body["message"]


class TestConsistencyEndpoint:
    """POST /consistency/check."""

    def test_inconsistent_booking(self, client):
        response = client.post(
            CONSISTENCY_URL,
            json={"payment_state": "confirmed", "session_state": "cancelled"},
        )

        body = response.json()
        assert response.status_code == 200
        assert body["consistent"] is False
        assert body["required_actions"] == ["issue_refund"]

    def test_unknown_state(self, client):
        response = client.post(
            CONSISTENCY_URL,
            json={"payment_state": "settled", "session_state": "paid"},
        )

        assert response.status_code == 422


class TestIntegrityEndpoints:
    """Enforcement administration."""

    def test_health_is_public(self, client):
        response = client.get("/api/v1/integrity/health")

        assert response.status_code == 200
        assert response.json()["status"] == "active"

    def test_stats_require_token(self, client):
        assert client.get("/api/v1/integrity/stats").status_code == 403

        response = client.get("/api/v1/integrity/stats", headers={"X-Admin-Token": ADMIN_TOKEN})
        assert response.status_code == 200
        assert response.json()["enforcement_level"] == "strict"

    def test_wrong_token(self, client):
        response = client.get("/api/v1/integrity/stats", headers={"X-Admin-Token": "guess"})

        assert response.status_code == 403
        assert response.json()["detail"] == "Admin access required"

    def test_change_level(self, client, enforcer):
        response = client.put(
            "/api/v1/integrity/enforcement",
            json={"level": "warn", "reason": "gradual rollout", "changed_by": "ops"},
            headers={"X-Admin-Token": ADMIN_TOKEN},
        )

        assert response.status_code == 200
        assert response.json()["previous_level"] == "strict"
        assert enforcer.level.value == "warn"

    def test_admin_disabled_without_configured_token(self, client, test_settings):
        test_settings.integrity_admin_token = None

        response = client.get("/api/v1/integrity/stats", headers={"X-Admin-Token": ADMIN_TOKEN})

        assert response.status_code == 403
        assert response.json()["detail"] == "Integrity administration is disabled"


class TestAppHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
