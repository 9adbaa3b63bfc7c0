import json
from datetime import datetime, timezone

import pytest
from conftest import make_item, make_payload

from finding.records import RecordConversionError, item_to_record, response_to_records
from finding.request import Operation
from finding.response import decode_response


def _decode(payload):
    return decode_response(Operation.FIND_ITEMS_BY_KEYWORDS, json.dumps(payload))


def test_response_to_records(keywords_payload):
    records = response_to_records(_decode(keywords_payload))

    assert len(records) == 1
    record = records[0]
    assert record.item_id == 110123456789
    assert record.title == "Jet-Puffed Marshmallows 16 oz"
    assert record.timestamp == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    assert record.version == "1.13.0"
    assert record.condition_id == 1000
    assert record.condition_display_name == "New"
    assert record.primary_category_id == 14308
    assert record.listing_info_watch_count == 7
    assert record.listing_info_best_offer_enabled is False
    assert record.top_rated_listing is True
    assert record.selling_status_current_price_value == pytest.approx(1.99)
    assert record.shipping_service_cost_value == pytest.approx(4.5)
    assert record.product_id_type == "ReferenceID"
    assert record.product_id_value == "1234567"
    assert record.subtitle is None


def test_optional_fields_become_none():
    item = make_item()
    for key in ("galleryURL", "subtitle", "productId", "location", "postalCode"):
        item.pop(key, None)
    item["listingInfo"][0].pop("watchCount")

    records = response_to_records(_decode(make_payload(items=[item])))

    assert records[0].gallery_url is None
    assert records[0].product_id_type is None
    assert records[0].listing_info_watch_count is None


def test_item_to_record_rejects_unparsable_values():
    item = make_item()
    item["topRatedListing"] = ["maybe"]
    decoded = _decode(make_payload(items=[item])).items_response[0].search_result[0].item[0]

    with pytest.raises(RecordConversionError):
        item_to_record(decoded, timestamp=datetime(2024, 5, 1, tzinfo=timezone.utc), version="1.13.0")


def test_entries_that_fail_conversion_are_skipped():
    item = make_item()
    del item["title"]

    assert response_to_records(_decode(make_payload(items=[item]))) == []


def test_empty_response_has_no_records():
    assert response_to_records(decode_response(Operation.FIND_ITEMS_BY_KEYWORDS, b"{}")) == []
