from datetime import date

import pytest

from app.crm import create_app
from app.crm.errors import CrmApiError
from app.crm.models import load_all_models
from app.crm.modules.configuration.backend import InMemoryConfigurationBackend
from app.crm.modules.configuration.store import ConfigurationStore


class FakeCrmApi:
    """Stands in for CrmApiClient; collections are plain lists of dicts."""

    def __init__(self, data=None, *, down=False):
        today = date.today().isoformat()
        self.data = data if data is not None else {
            "customers": [
                {"id": 1, "name": "Acme Corp", "status": "active", "createdAt": today, "customFields": {"industry": "Tech"}},
                {"id": 2, "name": "Globex", "status": "inactive", "createdAt": "2020-01-05"},
            ],
            "quotes": [
                {"id": 10, "quoteNumber": "Q-010", "customerName": "Acme Corp", "quoteDate": today, "totalAmount": 120, "status": "draft"},
            ],
            "sales-orders": [{"id": 20, "orderNumber": "SO-020", "orderDate": today, "totalAmount": 300}],
            "invoices": [],
            "purchase-orders": [],
            "projects": [{"id": 30, "name": "Rollout", "dueDate": today, "status": "open"}],
            "products": [
                {"id": 100, "name": "Widget", "price": "10.00"},
                {"id": 101, "name": "Gadget", "price": "2.50"},
            ],
        }
        self.down = down
        self.created: list[dict] = []

    def _check(self):
        if self.down:
            raise CrmApiError("HTTP 503 from CRM API", status_code=503)

    def list(self, collection, **params):
        self._check()
        return list(self.data.get(collection, []))

    def get(self, collection, record_id):
        self._check()
        for r in self.data.get(collection, []):
            if str(r.get("id")) == str(record_id):
                return r
        raise CrmApiError("HTTP 404 from CRM API", status_code=404)

    def get_customers(self):
        return self.list("customers")

    def get_customer_by_id(self, customer_id):
        return self.get("customers", customer_id)

    def get_quotes(self):
        return self.list("quotes")

    def get_products(self):
        return self.list("products")

    def create_quote(self, quote):
        self._check()
        record = {"id": 99, **quote}
        self.created.append(record)
        self.data.setdefault("quotes", []).append(record)
        return record


@pytest.fixture()
def fake_api():
    return FakeCrmApi()


@pytest.fixture()
def app(tmp_path, monkeypatch, fake_api):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("CONFIG_SAVE_BACKOFF", "0")

    app = create_app(api_client=fake_api)
    app.config["TESTING"] = True

    engine = app.extensions["sqlalchemy_engine"]
    load_all_models().metadata.create_all(bind=engine)
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def memory_store():
    return ConfigurationStore(InMemoryConfigurationBackend(), save_backoff=0)


@pytest.fixture()
def down_api():
    return FakeCrmApi(down=True)
