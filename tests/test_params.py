import pytest

from finding.errors import ErrorKind, FindingError
from finding.params import (
    ItemFilterParam,
    Syntax,
    classify,
    parse_aspect_filters,
    parse_item_filters,
    parse_output_selectors,
    parse_values,
)
from finding.request import Operation, parse_request


@pytest.mark.parametrize(
    "params,expected",
    [
        ({"itemFilter.value": "true"}, ["true"]),
        ({"itemFilter.value(0)": "a", "itemFilter.value(1)": "b"}, ["a", "b"]),
        ({"itemFilter.value(0)": "a", "itemFilter.value(2)": "c"}, ["a"]),
    ],
)
def test_parse_values(params, expected):
    assert parse_values(params, "itemFilter.value") == expected


def test_parse_values_rejects_both_syntaxes():
    with pytest.raises(FindingError) as excinfo:
        parse_values({"itemFilter.value": "a", "itemFilter.value(0)": "b"}, "itemFilter.value")

    assert excinfo.value.kind is ErrorKind.INVALID_FILTER_SYNTAX


def test_parse_values_requires_a_value():
    with pytest.raises(FindingError) as excinfo:
        parse_values({"itemFilter.name": "FreeShippingOnly"}, "itemFilter.value")

    assert excinfo.value.kind is ErrorKind.INCOMPLETE_FILTER


def test_classify():
    assert classify({"itemFilter.name": "x"}, "itemFilter", "name") is Syntax.NON_NUMBERED
    assert classify({"itemFilter(0).name": "x"}, "itemFilter", "name") is Syntax.NUMBERED
    assert classify({"keywords": "x"}, "itemFilter", "name") is None


@pytest.mark.parametrize(
    "params",
    [
        {"itemFilter.name": "FreeShippingOnly", "itemFilter.value": "true",
         "itemFilter(0).name": "FreeShippingOnly", "itemFilter(0).value": "true"},
        {"itemFilter.name": "Currency", "itemFilter.value": "USD", "itemFilter.value(0)": "USD"},
        {"itemFilter(0).name": "Currency", "itemFilter(0).value": "USD", "itemFilter(0).value(0)": "USD"},
        {"aspectFilter.aspectName": "Size", "aspectFilter.aspectValueName": "M",
         "aspectFilter(0).aspectName": "Size", "aspectFilter(0).aspectValueName": "M"},
        {"aspectFilter.aspectName": "Size", "aspectFilter.aspectValueName": "M",
         "aspectFilter.aspectValueName(0)": "L"},
        {"outputSelector": "SellerInfo", "outputSelector(0)": "SellerInfo"},
        {"categoryId": "1", "categoryId(0)": "1"},
    ],
)
def test_mixed_syntax_is_rejected_for_every_family(params):
    params = dict(params, keywords="marshmallows")

    with pytest.raises(FindingError) as excinfo:
        parse_request(Operation.FIND_ITEMS_ADVANCED, params)

    assert excinfo.value.kind is ErrorKind.INVALID_FILTER_SYNTAX
    assert excinfo.value.status_code == 400


def test_parse_item_filters_non_numbered():
    filters = parse_item_filters(
        {
            "itemFilter.name": "MaxPrice",
            "itemFilter.value": "5.0",
            "itemFilter.paramName": "Currency",
            "itemFilter.paramValue": "USD",
        }
    )

    assert len(filters) == 1
    assert filters[0].name == "MaxPrice"
    assert filters[0].values == ("5.0",)
    assert filters[0].param == ItemFilterParam(name="Currency", value="USD")


def test_parse_item_filters_numbered_keeps_order_and_stops_at_gap():
    filters = parse_item_filters(
        {
            "itemFilter(0).name": "Condition",
            "itemFilter(0).value(0)": "1000",
            "itemFilter(0).value(1)": "1500",
            "itemFilter(1).name": "FreeShippingOnly",
            "itemFilter(1).value": "true",
            "itemFilter(3).name": "LotsOnly",
            "itemFilter(3).value": "true",
        }
    )

    assert [f.name for f in filters] == ["Condition", "FreeShippingOnly"]
    assert filters[0].values == ("1000", "1500")
    assert filters[1].param is None


@pytest.mark.parametrize(
    "extra",
    [{"itemFilter.paramName": "Currency"}, {"itemFilter.paramValue": "USD"}],
)
def test_item_filter_param_requires_both_halves(extra):
    params = {"itemFilter.name": "MaxPrice", "itemFilter.value": "5.0", **extra}

    with pytest.raises(FindingError) as excinfo:
        parse_item_filters(params)

    assert excinfo.value.kind is ErrorKind.INCOMPLETE_FILTER
    assert excinfo.value.code == "IncompleteItemFilterParam"


def test_parse_aspect_filters():
    filters = parse_aspect_filters(
        {
            "aspectFilter(0).aspectName": "Size",
            "aspectFilter(0).aspectValueName(0)": "M",
            "aspectFilter(0).aspectValueName(1)": "L",
            "aspectFilter(1).aspectName": "Color",
            "aspectFilter(1).aspectValueName": "Blue",
        }
    )

    assert [(f.aspect_name, f.value_names) for f in filters] == [
        ("Size", ("M", "L")),
        ("Color", ("Blue",)),
    ]


def test_aspect_value_without_name_is_incomplete():
    with pytest.raises(FindingError) as excinfo:
        parse_aspect_filters({"aspectFilter.aspectValueName": "M"})

    assert excinfo.value.kind is ErrorKind.INCOMPLETE_FILTER
    assert excinfo.value.code == "IncompleteAspectFilter"


@pytest.mark.parametrize(
    "params,prefix",
    [
        ({"aspectFilter(0).aspectValueName": "M"}, "aspectFilter(0)"),
        ({"aspectFilter(0).aspectValueName(0)": "M"}, "aspectFilter(0)"),
        (
            {
                "aspectFilter(0).aspectName": "Size",
                "aspectFilter(0).aspectValueName": "M",
                "aspectFilter(1).aspectValueName(0)": "Blue",
            },
            "aspectFilter(1)",
        ),
    ],
)
def test_numbered_aspect_value_without_name_is_incomplete(params, prefix):
    with pytest.raises(FindingError) as excinfo:
        parse_aspect_filters(params)

    assert excinfo.value.kind is ErrorKind.INCOMPLETE_FILTER
    assert excinfo.value.code == "IncompleteAspectFilter"
    assert excinfo.value.value == prefix


def test_numbered_aspect_value_without_name_through_request():
    with pytest.raises(FindingError) as excinfo:
        parse_request(
            Operation.FIND_ITEMS_BY_KEYWORDS,
            {"keywords": "marshmallows", "aspectFilter(0).aspectValueName": "M"},
        )

    assert excinfo.value.code == "IncompleteAspectFilter"
    assert excinfo.value.status_code == 400


def test_parse_output_selectors():
    assert parse_output_selectors({}) == []
    assert parse_output_selectors({"outputSelector": "SellerInfo"}) == ["SellerInfo"]
    assert parse_output_selectors(
        {"outputSelector(0)": "SellerInfo", "outputSelector(1)": "StoreInfo"}
    ) == ["SellerInfo", "StoreInfo"]
