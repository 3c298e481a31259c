import json
from unittest.mock import patch

import pytest

from citizenwallet.config.community_config import (AccountVariant,
                                                   CommunityConfig,
                                                   fetch_community_config)
from citizenwallet.exceptions import ConfigLookupError

from conftest import (ACCOUNT_FACTORY_ADDRESS, NODE_URL, PAYMASTER_ADDRESS,
                      SAFE_ACCOUNT_FACTORY_ADDRESS, SESSION_PROVIDER_ADDRESS,
                      TOKEN_ADDRESS)


def test_primary_lookups(community_config):
    assert community_config.community.alias == "gratitude"
    assert community_config.primary_token.address == TOKEN_ADDRESS
    assert community_config.primary_token.decimals == 6
    assert community_config.primary_network.id == 42220
    assert community_config.primary_network.node_url == NODE_URL
    assert community_config.primary_rpc_url == (
        f"{NODE_URL}/v1/rpc/{PAYMASTER_ADDRESS}")
    assert community_config.primary_session_config.provider_address == (
        SESSION_PROVIDER_ADDRESS)
    assert community_config.primary_card_config.instance_id == "cw-gratitude"
    assert community_config.version == 4


def test_account_variant_follows_paymaster_type(community_config):
    assert community_config.primary_account_config.variant == (
        AccountVariant.plain)
    safe_account = community_config.get_account_config(
        SAFE_ACCOUNT_FACTORY_ADDRESS)
    assert safe_account.variant == AccountVariant.safe_module
    assert community_config.get_account_config(
        ACCOUNT_FACTORY_ADDRESS).paymaster_type == "cw"


def test_missing_entries_raise(config_dict):
    del config_dict["tokens"]
    config = CommunityConfig(config_dict)
    with pytest.raises(ConfigLookupError):
        config.primary_token
    with pytest.raises(ConfigLookupError):
        config.get_account_config("0x" + "11" * 20)


def test_missing_session_manager_raises(config_dict):
    del config_dict["community"]["primary_session_manager"]
    with pytest.raises(ConfigLookupError):
        CommunityConfig(config_dict).primary_session_config


def test_community_url(config_dict, monkeypatch):
    monkeypatch.delenv("BASE_DOMAIN", raising=False)
    assert CommunityConfig(config_dict).community_url == (
        "https://gratitude.citizenwallet.xyz")
    config_dict["community"]["custom_domain"] = "wallet.sfluv.org"
    assert CommunityConfig(config_dict).community_url == (
        "https://wallet.sfluv.org")


def test_explorer_url_falls_back_to_known_network(config_dict):
    assert CommunityConfig(config_dict).explorer_url == "https://celoscan.io"
    del config_dict["scan"]
    assert CommunityConfig(config_dict).explorer_url == "https://celoscan.io"


def test_from_file(tmp_path, config_dict):
    path = tmp_path / "community.json"
    path.write_text(json.dumps(config_dict))
    assert CommunityConfig.from_file(str(path)).community.name == (
        "Gratitude Token")


class FakeResponse:
    def __init__(self, status: int, body=None):
        self.status = status
        self.body = body

    async def json(self, content_type=None):
        return self.body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


class FakeClientSession:
    def __init__(self, response: FakeResponse):
        self.response = response
        self.urls = []

    def __call__(self, **kwargs):
        return self

    def get(self, url):
        self.urls.append(url)
        return self.response

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


@pytest.mark.asyncio
async def test_fetch_community_config(config_dict):
    url = "https://config.internal.citizenwallet.xyz/gratitude.json"
    session = FakeClientSession(FakeResponse(200, config_dict))
    with patch("citizenwallet.config.community_config.ClientSession", session):
        community_config = await fetch_community_config(url)
    assert session.urls == [url]
    assert community_config.community.alias == "gratitude"


@pytest.mark.asyncio
async def test_fetch_community_config_failure():
    session = FakeClientSession(FakeResponse(404))
    with patch("citizenwallet.config.community_config.ClientSession", session):
        with pytest.raises(ConfigLookupError):
            await fetch_community_config("https://example.com/missing.json")
