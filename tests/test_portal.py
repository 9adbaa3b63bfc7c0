from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from finding import portal
from finding.lambda_handler import set_sink
from finding.model import FindingClient


class _StubFactory:
    def __init__(self):
        self.http_get = MagicMock(return_value=(200, b"{}"))

    def __call__(self, config):
        return FindingClient(app_id="test-app", http_get=self.http_get)


@pytest.fixture
def factory(monkeypatch):
    stub = _StubFactory()
    monkeypatch.setattr(portal, "_client_factory", stub)
    return stub


@pytest.fixture
def client():
    return TestClient(portal.app)


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"ok": True}


def test_find_keywords(client, factory, keywords_body):
    factory.http_get.return_value = (200, keywords_body)

    response = client.get("/find/keywords", params={"keywords": "marshmallows", "itemFilter(0).name": "FreeShippingOnly", "itemFilter(0).value": "true"})

    assert response.status_code == 200
    assert response.json()["findItemsByKeywordsResponse"][0]["ack"] == ["Success"]
    query = factory.http_get.call_args[0][1]
    assert query["itemFilter(0).value(0)"] == "true"


def test_find_validation_error(client, factory):
    response = client.get("/find/product", params={"productId.@type": "ISBN", "productId": "0131101631"})

    assert response.status_code == 400
    assert response.json()["kind"] == "InvalidChecksum"
    assert response.json()["code"] == "InvalidISBN"
    assert not factory.http_get.called


def test_find_repeated_parameter(client, factory):
    response = client.get("/find/keywords?keywords=marshmallows&keywords=fluff")

    assert response.status_code == 400
    assert not factory.http_get.called


def test_find_unknown_operation(client, factory):
    assert client.get("/find/everything", params={"keywords": "fluff"}).status_code == 404


def test_find_transport_failure(client, factory):
    factory.http_get.side_effect = ConnectionResetError("reset by peer")

    response = client.get("/find/keywords", params={"keywords": "marshmallows"})

    assert response.status_code == 500
    assert response.json()["kind"] == "TransportFailure"


def test_find_upstream_error_message(client, factory, error_body):
    factory.http_get.return_value = (200, error_body)

    response = client.get("/find/keywords", params={"keywords": "marshmallows"})

    assert response.status_code == 400
    assert "errorMessage" in response.json()["findItemsByKeywordsResponse"][0]


def test_find_writes_records_to_registered_sink(client, factory, keywords_body):
    factory.http_get.return_value = (200, keywords_body)
    sink = MagicMock()
    set_sink(sink)
    try:
        response = client.get("/find/keywords", params={"keywords": "marshmallows"})
    finally:
        set_sink(None)

    assert response.status_code == 200
    (records,), _ = sink.write.call_args
    assert [record.item_id for record in records] == [110123456789]
