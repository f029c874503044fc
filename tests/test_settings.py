from app.crm import create_app
from app.crm.modules.configuration.backend import InMemoryConfigurationBackend
from app.crm.modules.configuration.store import ConfigurationStore, get_store


def test_customize_redirects_to_general(client):
    r = client.get("/customize/", follow_redirects=False)
    assert r.status_code == 302
    assert r.headers["Location"].endswith("/customize/general")


def test_save_general_settings(client, app):
    r = client.post(
        "/customize/general",
        data={"company_name": "Acme Sales", "currency": "eur", "date_format": "YYYY-MM-DD"},
        follow_redirects=True,
    )
    assert r.status_code == 200
    assert b"General settings saved." in r.data
    assert b"Acme Sales" in r.data
    general = get_store(app).config.general
    assert (general.company_name, general.currency, general.date_format) == ("Acme Sales", "EUR", "YYYY-MM-DD")


def test_invalid_general_settings_rerender(client, app):
    r = client.post("/customize/general", data={"company_name": "", "currency": "EURO", "date_format": "YYYY-MM-DD"})
    assert r.status_code == 400
    assert b"Company name is required." in r.data
    assert get_store(app).config.general.company_name == "CRM System"


def test_save_theme_updates_sidebar_colours(client):
    r = client.post(
        "/customize/theme",
        data={"primary": "#112233", "secondary": "#445566", "sidebar": "#778899"},
        follow_redirects=True,
    )
    assert b"Theme saved." in r.data
    assert b"--sidebar: #778899" in r.data


def test_invalid_theme_is_rejected(client):
    r = client.post("/customize/theme", data={"primary": "red", "secondary": "#445566", "sidebar": "#778899"})
    assert r.status_code == 400
    assert b"Primary color must look like #4a6cf7." in r.data


def test_persistence_failure_keeps_form_values(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    store = ConfigurationStore(InMemoryConfigurationBackend(), save_backoff=0)
    app = create_app(store=store)
    store.load()
    store.close()

    r = app.test_client().post("/customize/general", data={"company_name": "Kept", "currency": "USD", "date_format": "MM/DD/YYYY"})
    assert r.status_code == 503
    assert b'value="Kept"' in r.data
    assert b"Failed to save general settings." in r.data
