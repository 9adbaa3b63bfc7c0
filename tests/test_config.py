import pytest

from finding.config import DEFAULT_BASE_URL, FindingConfig


def test_defaults():
    config = FindingConfig.from_env({})

    assert config == FindingConfig()
    assert config.base_url == DEFAULT_BASE_URL
    assert config.timeout == 10.0
    assert config.app_id_parameter == "ebay-app-id"
    assert config.app_id_env == "EBAY_APP_ID"


def test_from_env_overrides():
    config = FindingConfig.from_env(
        {
            "FINDING_BASE_URL": "https://svcs.sandbox.ebay.com/services/search/FindingService/v1",
            "FINDING_TIMEOUT": "2.5",
            "FINDING_APP_ID_PARAMETER": "/finding/app-id",
            "FINDING_APP_ID_ENV": "SANDBOX_APP_ID",
        }
    )

    assert config.base_url.startswith("https://svcs.sandbox.ebay.com")
    assert config.timeout == 2.5
    assert config.app_id_parameter == "/finding/app-id"
    assert config.app_id_env == "SANDBOX_APP_ID"


@pytest.mark.parametrize("value", ["soon", "0", "-1"])
def test_invalid_timeout(value):
    with pytest.raises(ValueError):
        FindingConfig.from_env({"FINDING_TIMEOUT": value})
