"""
Tests for health, readiness, and metrics endpoints.
"""
from unittest.mock import patch

from core.config import settings


def test_root_endpoint(client):
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["service"] == "Guardian Service API"
    assert data["version"] == "1.0.0"
    assert "health" in data
    assert "ready" in data
    assert "metrics" in data


def test_health_endpoint(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "timestamp" in data


def test_ready_with_database_only(client):
    """With sync disabled only the store is checked."""
    with patch.object(settings, "guardian_sync_enabled", False):
        response = client.get("/ready")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert [d["name"] for d in data["dependencies"]] == ["database"]
    assert data["dependencies"][0]["status"] == "ok"


def test_ready_degraded_when_broker_down(client):
    with patch.object(settings, "guardian_sync_enabled", True), \
            patch("api.routers.health.redis.from_url") as mock_from_url:
        import redis
        mock_from_url.return_value.ping.side_effect = redis.ConnectionError("refused")
        response = client.get("/ready")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "degraded"
    broker = next(d for d in data["dependencies"] if d["name"] == "sync_broker")
    assert broker["status"] == "degraded"


def test_ready_not_ready_when_database_fails(client, test_app):
    class BrokenDatabase:
        def get_connection(self):
            raise OSError("disk gone")

    from core import dependencies as deps
    test_app.dependency_overrides[deps.get_database] = lambda: BrokenDatabase()
    with patch.object(settings, "guardian_sync_enabled", False):
        response = client.get("/ready")

    assert response.status_code == 503
    assert response.json()["status"] == "not_ready"


def test_metrics_endpoint(client):
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "text/plain" in response.headers["content-type"]
    assert 'http_requests_total{status="2xx"}' in response.text
    assert 'guardian_exports_total{kind="glucose"}' in response.text
    assert 'sync_push_total{result="success"}' in response.text


def test_metrics_json_endpoint(client):
    data = client.get("/metrics/json").json()
    assert "http_requests_total" in data
    assert "sync_push_failure_total" in data


def test_request_id_header(test_app):
    from fastapi.testclient import TestClient
    from core.middleware import LoggingMiddleware

    test_app.add_middleware(LoggingMiddleware)
    response = TestClient(test_app).get("/api/v1/patient")

    assert response.status_code == 200
    assert len(response.headers["X-Request-ID"]) == 8


def test_metrics_collector_counts():
    from core.middleware import MetricsCollector

    collector = MetricsCollector()
    for status_code, duration in ((200, 10.0), (404, 20.0), (500, 30.0)):
        collector.record_request(status_code, duration)
    collector.record_export("bp", qr_partial=True)
    collector.record_export("glucose", qr_partial=False)
    collector.record_ocr("mismatch")
    collector.record_sync_push(success=False)

    summary = collector.get_summary()
    assert summary["http_requests_total"] == 3
    assert summary["http_requests_4xx_total"] == 1
    assert summary["http_requests_5xx_total"] == 1
    assert summary["http_request_duration_ms_sum"] == 60.0
    assert summary["exports_bp_total"] == 1
    assert summary["exports_glucose_total"] == 1
    assert summary["exports_qr_partial_total"] == 1
    assert summary["ocr_mismatch_total"] == 1
    assert summary["ocr_success_total"] == 0
    assert summary["sync_push_failure_total"] == 1


def test_prometheus_text_names_the_activity():
    from core.middleware import MetricsCollector

    collector = MetricsCollector()
    collector.record_request(201, 5.0)
    collector.record_export("bp", qr_partial=False)

    text = collector.get_prometheus_format()
    assert 'http_requests_total{status="2xx"} 1' in text
    assert "http_request_duration_ms_count 1" in text
    assert 'guardian_exports_total{kind="bp"} 1' in text
    assert 'guardian_ocr_total{outcome="fail"} 0' in text
