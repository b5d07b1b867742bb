import json

from handlers import health_check


def test_health_check_returns_ok():
    resp = health_check.lambda_handler({}, None)
    assert resp["statusCode"] == 200
    assert "ok" in resp["body"]


def test_health_check_reports_collaborator_mode(monkeypatch):
    monkeypatch.setenv("COLLABORATOR_MODE", "fixture")
    body = json.loads(health_check.lambda_handler({}, None)["body"])
    assert body["service"] == "messenger-api"
    assert body["collaborator_mode"] == "fixture"


def test_health_check_reports_tables():
    body = json.loads(health_check.lambda_handler({}, None)["body"])
    assert body["tables"] == {
        "customers": "test-customers",
        "companies": "test-companies",
        "lookups": "test-lookups",
    }
