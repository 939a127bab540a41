"""Integration tests for the HTTP surface."""

from datetime import date
from uuid import uuid4

from sqlalchemy.exc import OperationalError

from conftest import utc
from crud import chat as crud_chat
from crud import daily_analytics as crud_daily
from service import ingestion


class TestMetricsEndpoints:
    """Tests for /metrics ingestion routes."""

    def test_create_sample(self, client, chatbot):
        response = client.post("/metrics/samples", json={
            "chatbot_id": str(chatbot.id),
            "response_time": 1.5,
            "token_usage": 42,
            "endpoint": "/chat",
            "metadata": {"trace": "abc"},
        })

        assert response.status_code == 201
        data = response.json()
        assert data["response_time"] == 1.5
        assert data["status_code"] == 200
        assert data["metadata"] == {"trace": "abc"}

    def test_invalid_sample_returns_400(self, client, chatbot):
        response = client.post("/metrics/samples", json={
            "chatbot_id": str(chatbot.id),
            "response_time": -2,
        })

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "VALIDATION_ERROR"
        assert body["retry_allowed"] is False

    def test_unknown_chatbot_returns_404(self, client):
        response = client.post("/metrics/samples", json={"chatbot_id": str(uuid4()), "response_time": 1})

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_upsert_conversation_metric(self, client, chatbot):
        conversation_id = uuid4()
        url = f"/metrics/conversations/{conversation_id}"

        first = client.put(url, json={"chatbot_id": str(chatbot.id), "user_satisfaction": 5})
        second = client.put(url, json={"chatbot_id": str(chatbot.id), "message_count": 8})

        assert first.status_code == 200
        assert second.status_code == 200
        data = second.json()
        assert data["conversation_id"] == str(conversation_id)
        assert data["user_satisfaction"] == 5
        assert data["message_count"] == 8

    def test_upsert_invalid_rating(self, client, chatbot):
        response = client.put(
            f"/metrics/conversations/{uuid4()}",
            json={"chatbot_id": str(chatbot.id), "user_satisfaction": 9},
        )
        assert response.status_code == 400

    def test_cleanup(self, client, db_session, chatbot):
        ingestion.record_sample(db_session, chatbot.id, 1.0, timestamp=utc(2000, 1, 1))

        response = client.post("/metrics/cleanup", json={"max_age_days": 30})

        assert response.status_code == 200
        assert response.json() == {"deleted": 1}

    def test_cleanup_rejects_zero_days(self, client):
        response = client.post("/metrics/cleanup", json={"max_age_days": 0})
        assert response.status_code == 400


class TestAnalyticsEndpoints:
    """Tests for /analytics read routes."""

    def _url(self, chatbot_id, path):
        return f"/analytics/chatbots/{chatbot_id}/{path}"

    def test_unknown_chatbot(self, client):
        response = client.get(self._url(uuid4(), "dashboard"))
        assert response.status_code == 404
        assert response.json()["success"] is False

    def test_dashboard_empty(self, client, chatbot):
        response = client.get(self._url(chatbot.id, "dashboard"), params={"period": "7d"})

        assert response.status_code == 200
        data = response.json()
        assert data["total_conversations"] == 0
        assert data["performance_metrics"]["total_requests"] == 0

    def test_performance(self, client, db_session, chatbot):
        for rt, status in ((1.0, 200), (2.0, 200), (3.0, 200), (4.0, 200), (5.0, 500)):
            ingestion.record_sample(db_session, chatbot.id, rt, timestamp=utc(2025, 1, 1, 10), status_code=status)

        response = client.get(self._url(chatbot.id, "performance"), params={
            "start": "2025-01-01T00:00:00Z", "end": "2025-01-01T23:59:59Z",
        })

        assert response.status_code == 200
        stats = response.json()["performance_stats"]
        assert stats["p95_response_time"] == 5.0
        assert stats["error_rate"] == 20.0
        assert len(response.json()["performance_trends"]) == 1

    def test_errors_and_hourly(self, client, db_session, chatbot):
        ingestion.record_sample(
            db_session, chatbot.id, 1.0, timestamp=utc(2025, 1, 1, 10),
            status_code=503, endpoint="/chat", error_message="overloaded",
        )
        errors = client.get(self._url(chatbot.id, "errors")).json()
        assert errors["total_errors"] == 1
        assert errors["errors_by_status_code"] == {"503": 1}

        hourly = client.get(self._url(chatbot.id, "hourly"), params={
            "start": "2025-01-01T00:00:00Z", "end": "2025-01-02T00:00:00Z",
        })
        assert hourly.status_code == 200
        assert hourly.json()[0]["request_count"] == 1

    def test_hourly_rejects_inverted_range(self, client, chatbot):
        response = client.get(self._url(chatbot.id, "hourly"), params={
            "start": "2025-01-02T00:00:00Z", "end": "2025-01-01T00:00:00Z",
        })
        assert response.status_code == 400

    def test_generate_and_export(self, client, chatbot):
        generated = client.post(self._url(chatbot.id, "generate"), json={"start": "2025-01-01", "end": "2025-01-03"})
        assert generated.status_code == 200
        assert [r["date"] for r in generated.json()] == ["2025-01-01", "2025-01-02", "2025-01-03"]

        csv_response = client.get(self._url(chatbot.id, "export"), params={
            "start": "2025-01-01T00:00:00Z", "end": "2025-01-03T23:59:59Z", "format": "csv",
        })
        assert csv_response.status_code == 200
        assert csv_response.headers["content-type"].startswith("text/csv")
        assert len(csv_response.text.split("\n")) == 4

        json_response = client.get(self._url(chatbot.id, "export"), params={
            "start": "2025-01-01T00:00:00Z", "end": "2025-01-03T23:59:59Z",
        })
        assert len(json_response.json()) == 3

    def test_generate_inverted_range(self, client, chatbot):
        response = client.post(self._url(chatbot.id, "generate"), json={"start": "2025-01-03", "end": "2025-01-01"})
        assert response.status_code == 400

    def test_insights(self, client, db_session, chatbot):
        ingestion.upsert_conversation_metric(db_session, {
            "conversation_id": uuid4(), "chatbot_id": chatbot.id,
            "message_count": 4, "goal_achieved": True, "user_intent": "refund",
        })

        response = client.get(self._url(chatbot.id, "insights"))

        assert response.status_code == 200
        data = response.json()
        assert data["total_conversations"] == 1
        assert data["goal_achievement_rate"] == 1.0
        assert data["top_intents"] == [{"intent": "refund", "count": 1}]

    def test_rollup_visible_on_dashboard(self, client, db_session, chatbot):
        crud_daily.upsert(db_session, chatbot_id=chatbot.id, d=date(2025, 1, 1), rollup={
            "total_conversations": 3, "total_messages": 9, "unique_users": 2,
            "avg_conversation_length": 3.0, "avg_response_time": 1.2,
            "user_satisfaction_score": 4.0, "total_ratings": 1,
            "popular_queries": [], "response_categories": [],
        })

        response = client.get(self._url(chatbot.id, "dashboard"), params={
            "start": "2025-01-01T00:00:00Z", "end": "2025-01-01T23:59:59Z",
        })

        data = response.json()
        assert data["total_conversations"] == 3
        assert data["conversation_trends"] == [{"date": "2025-01-01", "conversations": 3, "messages": 9}]

    def test_start_without_end_is_rejected(self, client, db_session, chatbot):
        ingestion.record_sample(db_session, chatbot.id, 1.0, timestamp=utc(2020, 1, 5))

        response = client.get(self._url(chatbot.id, "performance"), params={"start": "2020-01-01T00:00:00Z"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_end_without_start_is_rejected(self, client, chatbot):
        for path in ("dashboard", "insights"):
            response = client.get(self._url(chatbot.id, path), params={"end": "2025-01-01T00:00:00Z"})
            assert response.status_code == 400

    def test_full_range_finds_old_sample(self, client, db_session, chatbot):
        ingestion.record_sample(db_session, chatbot.id, 1.0, timestamp=utc(2020, 1, 5))

        response = client.get(self._url(chatbot.id, "performance"), params={
            "start": "2020-01-01T00:00:00Z", "end": "2020-01-31T00:00:00Z",
        })

        assert response.json()["performance_stats"]["total_requests"] == 1


class TestDatabaseErrors:
    """Tests for database failures raised outside the service layer."""

    def _fail_with(self, monkeypatch, message):
        def _raise(db, chatbot_id):
            raise OperationalError("SELECT", {}, Exception(message))

        monkeypatch.setattr(crud_chat, "chatbot_exists", _raise)

    def test_generic_failure_is_not_retryable(self, client, monkeypatch):
        self._fail_with(monkeypatch, "disk I/O error")

        response = client.get(f"/analytics/chatbots/{uuid4()}/errors")

        assert response.status_code == 500
        body = response.json()
        assert body["error"]["code"] == "INTERNAL_ERROR"
        assert body["retry_allowed"] is False

    def test_timeout_is_retryable(self, client, monkeypatch):
        self._fail_with(monkeypatch, "canceling statement due to statement timeout")

        response = client.get(f"/analytics/chatbots/{uuid4()}/errors")

        assert response.status_code == 503
        body = response.json()
        assert body["error"]["code"] == "STORE_TIMEOUT"
        assert body["retry_allowed"] is True
