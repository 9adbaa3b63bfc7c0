import json
from datetime import datetime, timezone

import pytest
from conftest import make_payload

from finding.errors import ErrorKind, FindingError
from finding.request import Operation
from finding.response import (
    FindItemsByKeywordsResponse,
    FindItemsInEBayStoresResponse,
    RESPONSE_TYPES,
    decode_response,
)


def test_decode_keeps_single_element_lists(keywords_body):
    response = decode_response(Operation.FIND_ITEMS_BY_KEYWORDS, keywords_body)

    assert isinstance(response, FindItemsByKeywordsResponse)
    entry = response.items()[0]
    assert entry.ack == ["Success"]
    assert entry.version == ["1.13.0"]
    assert entry.timestamp == [datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)]
    assert entry.search_result[0].count == "1"
    item = entry.search_result[0].item[0]
    assert item.title == ["Jet-Puffed Marshmallows 16 oz"]
    assert item.selling_status[0].current_price[0].currency_id == "USD"
    assert item.selling_status[0].current_price[0].value == "1.99"
    assert item.listing_info[0].end_time[0] == datetime(2024, 5, 20, 8, 0, tzinfo=timezone.utc)
    assert item.product_id[0].type == "ReferenceID"
    assert entry.pagination_output[0].total_entries == ["1"]
    assert not response.is_empty
    assert not response.has_errors


def test_decode_error_message(error_body):
    response = decode_response(Operation.FIND_ITEMS_BY_KEYWORDS, error_body)

    assert response.has_errors
    error = response.items_response[0].error_message[0].error[0]
    assert error.error_id == ["11"]
    assert error.parameter[0].name == "Param1"


@pytest.mark.parametrize(
    "payload",
    [
        b'{"findItemsByKeywordsResponse": []}',
        b"{}",
    ],
)
def test_empty_responses_are_not_failures(payload):
    response = decode_response(Operation.FIND_ITEMS_BY_KEYWORDS, payload)

    assert response.is_empty
    assert not response.has_errors


@pytest.mark.parametrize(
    "payload",
    [
        b"not json",
        b"[]",
        b'{"findItemsByKeywordsResponse": {"ack": ["Success"]}}',
        b'{"findItemsByKeywordsResponse": [{"ack": "Success"}]}',
        b'{"findItemsByKeywordsResponse": [{"timestamp": ["yesterday"]}]}',
    ],
)
def test_malformed_envelopes_fail_to_decode(payload):
    with pytest.raises(FindingError) as excinfo:
        decode_response(Operation.FIND_ITEMS_BY_KEYWORDS, payload)

    assert excinfo.value.kind is ErrorKind.DECODE_FAILURE
    assert excinfo.value.status_code == 500


def test_unknown_keys_are_ignored():
    payload = make_payload()
    payload["findItemsByKeywordsResponse"][0]["searchResult"][0]["item"][0]["sellerRating"] = ["AAA"]

    response = decode_response(Operation.FIND_ITEMS_BY_KEYWORDS, json.dumps(payload))

    assert response.items_response[0].search_result[0].item[0].item_id == ["110123456789"]


def test_each_operation_reads_its_own_key():
    body = json.dumps(make_payload("findItemsIneBayStoresResponse"))

    stores = decode_response(Operation.FIND_ITEMS_IN_EBAY_STORES, body)
    keywords = decode_response(Operation.FIND_ITEMS_BY_KEYWORDS, body)

    assert isinstance(stores, FindItemsInEBayStoresResponse)
    assert not stores.is_empty
    assert keywords.is_empty
    assert set(RESPONSE_TYPES) == set(Operation)


def test_to_dict_restores_the_envelope(keywords_body):
    response = decode_response(Operation.FIND_ITEMS_BY_KEYWORDS, keywords_body)

    encoded = response.to_dict()

    entry = encoded["findItemsByKeywordsResponse"][0]
    assert entry["ack"] == ["Success"]
    assert entry["timestamp"] == ["2024-05-01T12:00:00Z"]
    assert entry["searchResult"][0]["@count"] == "1"
    price = entry["searchResult"][0]["item"][0]["sellingStatus"][0]["currentPrice"][0]
    assert price == {"@currencyId": "USD", "__value__": "1.99"}
    assert "errorMessage" not in entry
    json.dumps(encoded)
