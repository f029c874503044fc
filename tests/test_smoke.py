import pytest

from app.crm import create_app


def test_health_ok(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json["ok"] is True


def test_healthz_is_plain_ok(client):
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.data == b"ok"


def test_root_redirects_to_dashboard(client):
    r = client.get("/", follow_redirects=False)
    assert r.status_code == 302
    assert r.headers["Location"].endswith("/dashboard")


def test_unknown_page_is_404(client):
    r = client.get("/pages/nowhere")
    assert r.status_code == 404
    assert b"CRM System" in r.data


def test_sidebar_uses_theme_and_company_name(client):
    r = client.get("/customize/general")
    assert r.status_code == 200
    assert b"--primary: #4a6cf7" in r.data
    assert b"CRM System" in r.data


def test_production_rejects_sqlite(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "a-real-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'prod.db'}")
    monkeypatch.setenv("ENV", "production")
    with pytest.raises(RuntimeError, match="Postgres"):
        create_app()


def test_production_rejects_default_secret(monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "change-me")
    monkeypatch.setenv("DATABASE_URL", "postgresql+psycopg://u:p@localhost/crm")
    monkeypatch.setenv("ENV", "production")
    with pytest.raises(RuntimeError, match="SECRET_KEY"):
        create_app()
