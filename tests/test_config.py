from decimal import Decimal

import pytest

from snackmoney.core.config import (
    DEFAULT_RESOURCE_SERVER_URL,
    ClientConfig,
    load_client_config,
)
from snackmoney.core.environment import build_environment
from snackmoney.core.errors import ConfigError

PRIVATE_KEY = "0x" + "11" * 32


def test_defaults_from_empty_environment():
    config = ClientConfig.from_mapping({})

    assert config.resource_server_url == DEFAULT_RESOURCE_SERVER_URL
    assert config.timeout_seconds == 30
    assert config.cookie_price == Decimal("1")
    assert not config.has_evm_key
    assert not config.has_svm_key
    assert not config.has_language_model


def test_blank_values_count_as_missing():
    config = ClientConfig.from_mapping({"EVM_PRIVATE_KEY": "  ", "OPENAI_API_KEY": ""})
    assert not config.has_evm_key
    assert not config.has_language_model


def test_private_key_gets_hex_prefix():
    config = ClientConfig.from_mapping({"EVM_PRIVATE_KEY": "11" * 32})
    assert config.evm_private_key == PRIVATE_KEY


@pytest.mark.parametrize("raw", ["0x1234", "zz" * 32])
def test_invalid_private_key(raw):
    with pytest.raises(ConfigError):
        ClientConfig.from_mapping({"EVM_PRIVATE_KEY": raw})


def test_resource_server_url_is_normalized():
    config = ClientConfig.from_mapping({"RESOURCE_SERVER_URL": "http://localhost:3000/"})
    assert config.resource_server_url == "http://localhost:3000"

    with pytest.raises(ConfigError):
        ClientConfig.from_mapping({"RESOURCE_SERVER_URL": "ftp://example.com"})


@pytest.mark.parametrize(
    "key, value",
    [
        ("SNACKMONEY_TIMEOUT_SECONDS", "0"),
        ("SNACKMONEY_TIMEOUT_SECONDS", "soon"),
        ("SNACKMONEY_COOKIE_PRICE", "-1"),
        ("SNACKMONEY_COOKIE_PRICE", "free"),
    ],
)
def test_invalid_numeric_settings(key, value):
    with pytest.raises(ConfigError):
        ClientConfig.from_mapping({key: value})


def test_repr_hides_private_keys():
    config = ClientConfig.from_mapping({"EVM_PRIVATE_KEY": PRIVATE_KEY, "SVM_PRIVATE_KEY": "secret"})
    assert PRIVATE_KEY not in repr(config)
    assert "secret" not in repr(config)


def test_env_file_layering(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text(
        "# comment\n"
        "export SVM_PRIVATE_KEY='from-file'\n"
        'RESOURCE_SERVER_URL="http://localhost:3000"\n'
        "SNACKMONEY_TIMEOUT_SECONDS=10\n",
        encoding="utf-8",
    )

    config = load_client_config(
        env_file=str(env_file),
        base={"RESOURCE_SERVER_URL": "https://staging.snack.money"},
        overrides={"SNACKMONEY_TIMEOUT_SECONDS": "5"},
    )

    assert config.svm_private_key == "from-file"
    assert config.resource_server_url == "https://staging.snack.money"
    assert config.timeout_seconds == 5


def test_keyword_parameters_override_environment(tmp_path):
    config = load_client_config(
        env_file=str(tmp_path / "missing.env"),
        base={"SNACKMONEY_COOKIE_PRICE": "2"},
        cookie_price="0.5",
        evm_private_key=PRIVATE_KEY,
    )
    assert config.cookie_price == Decimal("0.5")
    assert config.evm_private_key == PRIVATE_KEY


def test_build_environment_without_env_file(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    environment = build_environment(env_file=None)
    assert environment.get("OPENAI_API_KEY") == "sk-test"
