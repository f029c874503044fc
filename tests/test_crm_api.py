import pytest
import requests

from app.crm import crm_api
from app.crm.crm_api import CrmApiClient
from app.crm.errors import CrmApiError


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeSession:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        r = self.responses.pop(0)
        if isinstance(r, Exception):
            raise r
        return r


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr(crm_api.time, "sleep", lambda _s: None)


def _client(*responses, retries=2):
    return CrmApiClient(base_url="http://crm.test/api/", timeout_seconds=5, retries=retries, http=FakeSession(responses))


def test_list_unwraps_items_and_passes_timeout():
    c = _client(FakeResponse(payload={"items": [{"id": 1}, "junk"]}))
    assert c.list("customers", status="active", page=None) == [{"id": 1}]
    method, url, kwargs = c.http.calls[0]
    assert (method, url) == ("GET", "http://crm.test/api/customers")
    assert kwargs["timeout"] == 5
    assert kwargs["params"] == {"status": "active"}


def test_get_retries_transient_failures():
    c = _client(requests.ConnectionError("reset"), FakeResponse(503), FakeResponse(payload={"id": 7}))
    assert c.get_customer_by_id(7) == {"id": 7}
    assert len(c.http.calls) == 3


def test_get_gives_up_after_retries():
    c = _client(requests.Timeout("slow"), requests.Timeout("slow"), requests.Timeout("slow"))
    with pytest.raises(CrmApiError, match="after retries"):
        c.get_quotes()


def test_post_is_never_retried():
    c = _client(FakeResponse(503, text="busy"), FakeResponse(payload={"id": 1}))
    with pytest.raises(CrmApiError) as exc:
        c.create_quote({"customerId": "1"})
    assert exc.value.status_code == 503
    assert len(c.http.calls) == 1


def test_client_errors_carry_status_code():
    c = _client(FakeResponse(404, text="missing"))
    with pytest.raises(CrmApiError) as exc:
        c.get("customers", "nope")
    assert exc.value.status_code == 404


def test_invalid_json_is_an_api_error():
    c = _client(FakeResponse(200, payload=None))
    with pytest.raises(CrmApiError, match="Invalid JSON"):
        c.get_products()
