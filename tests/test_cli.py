import json
from unittest.mock import MagicMock

import pytest

from finding import model
from finding.cli import main, parse_parameters


def test_parse_parameters():
    assert parse_parameters(["keywords=marshmallows", "itemFilter.value=a=b"]) == {
        "keywords": "marshmallows",
        "itemFilter.value": "a=b",
    }

    with pytest.raises(ValueError):
        parse_parameters(["keywords"])

    with pytest.raises(ValueError):
        parse_parameters(["keywords=a", "keywords=b"])


def test_dry_run_prints_url(capsys):
    exit_code = main(["keywords", "keywords=marshmallows", "--app-id", "cli-app", "--dry-run"])

    out = capsys.readouterr().out.strip()
    assert exit_code == 0
    assert out.startswith("https://svcs.ebay.com/services/search/FindingService/v1?OPERATION-NAME=findItemsByKeywords")
    assert "SECURITY-APPNAME=cli-app" in out
    assert out.endswith("keywords=marshmallows")


def test_search_writes_output(monkeypatch, tmp_path, keywords_body):
    http_get = MagicMock(return_value=(200, keywords_body))
    monkeypatch.setattr(model, "_default_http_get", http_get)
    output = tmp_path / "results.json"

    exit_code = main(
        ["category", "categoryId=14308", "--app-id", "cli-app", "--timeout", "4", "--output", str(output)]
    )

    assert exit_code == 0
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert payload["findItemsByCategoryResponse"] == []
    url, query, timeout = http_get.call_args[0]
    assert query["categoryId(0)"] == "14308"
    assert timeout == 4.0


def test_validation_error_exit_code(capsys):
    exit_code = main(["keywords", "keywords=x", "--app-id", "cli-app"])

    err = capsys.readouterr().err
    assert exit_code == 2
    assert json.loads(err)["code"] == "InvalidKeywordsLength"


def test_malformed_parameter_exits():
    with pytest.raises(SystemExit):
        main(["keywords", "marshmallows"])
