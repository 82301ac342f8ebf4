import pytest

from warehouse_tracker import create_app


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    body = r.get_json()
    assert body["ok"] is True
    assert body["service"] == "warehouse-tracker"
    assert body["db"] == "ok"


def test_version_reports_migration_head(client):
    body = client.get("/api/version").get_json()
    assert body["ok"] is True
    assert body["alembic_head"] == "3c1d9a7e5b20"
    assert "git_sha" not in body


def test_production_requires_strong_secret():
    with pytest.raises(RuntimeError):
        create_app({"ENV_NAME": "prod", "SECRET_KEY": "short", "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:"})


def test_log_level_follows_config():
    app = create_app({"SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:", "LOG_LEVEL": "WARNING"})
    assert app.logger.level == 30
