from apps import db


def test_health_reports_memory_store(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True, "components": {"db": {"ok": True, "backend": "memory"}}}


def test_health_returns_503_when_database_is_down(client, monkeypatch):
    from apps import settings

    monkeypatch.setattr(settings, "USE_IN_MEMORY_STORE", False)
    monkeypatch.setattr(db, "ping", lambda: False)
    r = client.get("/health")
    assert r.status_code == 503
    assert r.json()["ok"] is False


def test_health_with_sqlite(sqlite_engine, client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["components"]["db"]["backend"] == "sql"
