import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from aiohttp import ClientSession

from citizenwallet.config.env import get_env_or_default
from citizenwallet.config.networks import NETWORKS
from citizenwallet.exceptions import ConfigLookupError
from citizenwallet.typing import Address
from citizenwallet.utils.eth_client_utils import DEFAULT_HTTP_TIMEOUT


class AccountVariant(Enum):
    plain = "plain"
    safe_module = "safe-module"

    def __str__(self):
        return self.value

    @staticmethod
    def from_paymaster_type(paymaster_type: str) -> "AccountVariant":
        if paymaster_type == "cw-safe":
            return AccountVariant.safe_module
        return AccountVariant.plain


@dataclass(frozen=True)
class TokenConfig:
    standard: str
    name: str
    address: Address
    symbol: str
    decimals: int
    chain_id: int


@dataclass(frozen=True)
class ChainConfig:
    id: int
    node_url: str
    node_ws_url: str


@dataclass(frozen=True)
class AccountConfig:
    chain_id: int
    entrypoint_address: Address
    paymaster_address: Address
    account_factory_address: Address
    paymaster_type: str

    @property
    def variant(self) -> AccountVariant:
        return AccountVariant.from_paymaster_type(self.paymaster_type)


@dataclass(frozen=True)
class SessionConfig:
    chain_id: int
    module_address: Address
    factory_address: Address
    provider_address: Address


@dataclass(frozen=True)
class CardConfig:
    chain_id: int
    address: Address
    type: str
    instance_id: str | None = None


@dataclass(frozen=True)
class CommunityInfo:
    name: str
    description: str
    url: str
    alias: str
    logo: str
    profile_address: Address
    profile_chain_id: int
    primary_token_address: Address
    primary_token_chain_id: int
    primary_account_factory_address: Address
    primary_account_factory_chain_id: int
    custom_domain: str | None = None
    primary_session_manager_address: Address | None = None
    primary_card_manager_address: Address | None = None
    theme: dict[str, str] = field(default_factory=dict)


def _lookup(mapping: dict[str, Any] | None, key: str, what: str) -> dict:
    if not mapping or key not in mapping:
        raise ConfigLookupError(f"No {what} config found for {key}")
    return mapping[key]


class CommunityConfig:
    """
    Read only view over a community json document.
    Every accessor raises ConfigLookupError when the entry is missing.
    """

    config: dict[str, Any]

    def __init__(self, config: dict[str, Any]):
        self.config = config

    @staticmethod
    def from_dict(config: dict[str, Any]) -> "CommunityConfig":
        return CommunityConfig(config)

    @staticmethod
    def from_file(path: str) -> "CommunityConfig":
        with open(path) as config_file:
            return CommunityConfig(json.load(config_file))

    @property
    def community(self) -> CommunityInfo:
        community = self.config.get("community")
        if community is None:
            raise ConfigLookupError("No community section in config")
        try:
            return CommunityInfo(
                name=community["name"],
                description=community.get("description", ""),
                url=community.get("url", ""),
                alias=community["alias"],
                logo=community.get("logo", ""),
                profile_address=community["profile"]["address"],
                profile_chain_id=community["profile"]["chain_id"],
                primary_token_address=community["primary_token"]["address"],
                primary_token_chain_id=community["primary_token"]["chain_id"],
                primary_account_factory_address=(
                    community["primary_account_factory"]["address"]),
                primary_account_factory_chain_id=(
                    community["primary_account_factory"]["chain_id"]),
                custom_domain=community.get("custom_domain"),
                primary_session_manager_address=(
                    community.get("primary_session_manager") or {}).get("address"),
                primary_card_manager_address=(
                    community.get("primary_card_manager") or {}).get("address"),
                theme=community.get("theme") or {},
            )
        except KeyError as excp:
            raise ConfigLookupError(f"Missing community field {excp}")

    @property
    def primary_token(self) -> TokenConfig:
        community = self.community
        token = _lookup(
            self.config.get("tokens"),
            f"{community.primary_token_chain_id}:{community.primary_token_address}",
            "token",
        )
        return TokenConfig(
            standard=token.get("standard", "erc20"),
            name=token["name"],
            address=token["address"],
            symbol=token["symbol"],
            decimals=int(token["decimals"]),
            chain_id=int(token["chain_id"]),
        )

    @property
    def primary_network(self) -> ChainConfig:
        chain = _lookup(
            self.config.get("chains"),
            str(self.primary_token.chain_id),
            "chain",
        )
        return ChainConfig(
            id=int(chain["id"]),
            node_url=chain["node"]["url"],
            node_ws_url=chain["node"].get("ws_url", ""),
        )

    @property
    def primary_account_config(self) -> AccountConfig:
        return self.get_account_config()

    def get_account_config(
        self, account_factory_address: Address | None = None
    ) -> AccountConfig:
        if account_factory_address is None:
            account_factory_address = (
                self.community.primary_account_factory_address)
        account = _lookup(
            self.config.get("accounts"),
            f"{self.primary_network.id}:{account_factory_address}",
            "account",
        )
        return AccountConfig(
            chain_id=int(account["chain_id"]),
            entrypoint_address=account["entrypoint_address"],
            paymaster_address=account["paymaster_address"],
            account_factory_address=account["account_factory_address"],
            paymaster_type=account.get("paymaster_type", "cw"),
        )

    @property
    def primary_rpc_url(self) -> str:
        return (
            f"{self.primary_network.node_url}/v1/rpc/"
            f"{self.primary_account_config.paymaster_address}"
        )

    def get_rpc_url(
        self, account_factory_address: Address | None = None
    ) -> str:
        account_config = self.get_account_config(account_factory_address)
        return (
            f"{self.primary_network.node_url}/v1/rpc/"
            f"{account_config.paymaster_address}"
        )

    @property
    def primary_session_config(self) -> SessionConfig:
        community = self.community
        if community.primary_session_manager_address is None:
            raise ConfigLookupError("No primary session manager configured")
        session = _lookup(
            self.config.get("sessions"),
            f"{self.primary_network.id}:"
            f"{community.primary_session_manager_address}",
            "session",
        )
        return SessionConfig(
            chain_id=int(session["chain_id"]),
            module_address=session["module_address"],
            factory_address=session["factory_address"],
            provider_address=session["provider_address"],
        )

    @property
    def primary_card_config(self) -> CardConfig:
        community = self.community
        if community.primary_card_manager_address is None:
            raise ConfigLookupError("No primary card manager configured")
        card = _lookup(
            self.config.get("cards"),
            f"{self.primary_network.id}:"
            f"{community.primary_card_manager_address}",
            "card",
        )
        return CardConfig(
            chain_id=int(card["chain_id"]),
            address=card["address"],
            type=card.get("type", "safe"),
            instance_id=card.get("instance_id"),
        )

    @property
    def community_url(self) -> str:
        community = self.community
        if community.custom_domain:
            return f"https://{community.custom_domain}"
        base_domain = get_env_or_default("BASE_DOMAIN", "citizenwallet.xyz")
        return f"https://{community.alias}.{base_domain}"

    @property
    def ipfs_url(self) -> str:
        ipfs = self.config.get("ipfs")
        if not ipfs or "url" not in ipfs:
            raise ConfigLookupError("No ipfs config found")
        return ipfs["url"]

    @property
    def scan(self) -> dict[str, str]:
        return self.config.get("scan", {})

    @property
    def explorer_url(self) -> str:
        """Configured scan url, else the explorer of a known network."""
        if self.scan.get("url"):
            return self.scan["url"]
        network = NETWORKS.get(str(self.primary_network.id))
        if network is None:
            raise ConfigLookupError(
                f"No explorer known for chain {self.primary_network.id}")
        return network.explorer

    @property
    def plugins(self) -> list[dict[str, str]]:
        return self.config.get("plugins") or []

    @property
    def config_location(self) -> str | None:
        return self.config.get("config_location")

    @property
    def version(self) -> int:
        return int(self.config.get("version", 0))


async def fetch_community_config(url: str) -> CommunityConfig:
    async with ClientSession(timeout=DEFAULT_HTTP_TIMEOUT) as session:
        async with session.get(url) as response:
            if response.status != 200:
                raise ConfigLookupError(
                    f"Failed to fetch community config from {url}: "
                    f"status {response.status}")
            return CommunityConfig(await response.json(content_type=None))
