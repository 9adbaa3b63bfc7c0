import json

import pytest


def make_item(item_id="110123456789", title="Jet-Puffed Marshmallows 16 oz"):
    return {
        "itemId": [item_id],
        "title": [title],
        "globalId": ["EBAY-US"],
        "primaryCategory": [{"categoryId": ["14308"], "categoryName": ["Candy & Mints"]}],
        "galleryURL": ["https://thumbs.ebaystatic.com/m/marshmallows/140.jpg"],
        "viewItemURL": ["https://www.ebay.com/itm/110123456789"],
        "productId": [{"@type": "ReferenceID", "__value__": "1234567"}],
        "location": ["Chicago,IL,USA"],
        "country": ["US"],
        "postalCode": ["606**"],
        "shippingInfo": [
            {
                "shippingServiceCost": [{"@currencyId": "USD", "__value__": "4.5"}],
                "shippingType": ["Flat"],
                "shipToLocations": ["US"],
            }
        ],
        "sellingStatus": [
            {
                "currentPrice": [{"@currencyId": "USD", "__value__": "1.99"}],
                "convertedCurrentPrice": [{"@currencyId": "USD", "__value__": "1.99"}],
                "sellingState": ["Active"],
                "timeLeft": ["P2DT3H12M5S"],
            }
        ],
        "listingInfo": [
            {
                "bestOfferEnabled": ["false"],
                "buyItNowAvailable": ["false"],
                "startTime": ["2024-04-20T08:00:00.000Z"],
                "endTime": ["2024-05-20T08:00:00.000Z"],
                "listingType": ["FixedPrice"],
                "gift": ["false"],
                "watchCount": ["7"],
            }
        ],
        "condition": [{"conditionId": ["1000"], "conditionDisplayName": ["New"]}],
        "isMultiVariationListing": ["false"],
        "topRatedListing": ["true"],
    }


def make_payload(response_key="findItemsByKeywordsResponse", items=None):
    items = [make_item()] if items is None else items
    return {
        response_key: [
            {
                "ack": ["Success"],
                "version": ["1.13.0"],
                "timestamp": ["2024-05-01T12:00:00.000Z"],
                "searchResult": [{"@count": str(len(items)), "item": items}],
                "paginationOutput": [
                    {
                        "pageNumber": ["1"],
                        "entriesPerPage": ["100"],
                        "totalPages": ["1"],
                        "totalEntries": [str(len(items))],
                    }
                ],
                "itemSearchURL": ["https://www.ebay.com/sch/i.html?_nkw=marshmallows"],
            }
        ]
    }


def make_error_payload(response_key="findItemsByKeywordsResponse"):
    return {
        response_key: [
            {
                "ack": ["Failure"],
                "version": ["1.13.0"],
                "timestamp": ["2024-05-01T12:00:00.000Z"],
                "errorMessage": [
                    {
                        "error": [
                            {
                                "errorId": ["11"],
                                "domain": ["Security"],
                                "severity": ["Error"],
                                "category": ["System"],
                                "message": ["Authentication failed : Invalid Application: test-app"],
                                "subdomain": ["Authentication"],
                                "parameter": [{"@name": "Param1", "__value__": "test-app"}],
                            }
                        ]
                    }
                ],
            }
        ]
    }


@pytest.fixture
def keywords_payload():
    return make_payload()


@pytest.fixture
def keywords_body(keywords_payload):
    return json.dumps(keywords_payload).encode("utf-8")


@pytest.fixture
def error_body():
    return json.dumps(make_error_payload()).encode("utf-8")
