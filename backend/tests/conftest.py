import pytest

from warehouse_tracker import create_app
from warehouse_tracker.extensions import db

CRON_SECRET = "test-cron-secret"


@pytest.fixture()
def app():
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "CRON_SECRET_KEY": CRON_SECRET,
        "UNDO_WINDOW_SECONDS": 3,
        "SECTIONS_PER_ROW": 3,
        "DEFAULT_SECTION_COUNT": 6,
        "MAX_SECTIONS_PER_REQUEST": 60,
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def make_warehouse(client):
    def _make(letter="A", kind="indoor", sections=4, name=None):
        r = client.post("/api/warehouses", json={
            "letter": letter,
            "name": name or f"Warehouse {letter}",
            "kind": kind,
            "sections": sections,
        })
        assert r.status_code == 201, r.get_json()
        return r.get_json()["warehouse"]
    return _make
