import pytest
from eth_account import Account

from citizenwallet.config.community_config import CommunityConfig

CHAIN_ID = 42220
TOKEN_ADDRESS = "0x5815e61ef72c9e6107b5c5a05fd121f334f7a7f1"
PROFILE_ADDRESS = "0xa6ac8d16eb0b8b3da3b6e4b5c2e1d8f1c7e3a0b1"
ACCOUNT_FACTORY_ADDRESS = "0x9406cc6185a346906296840746125a0e44976454"
SAFE_ACCOUNT_FACTORY_ADDRESS = "0x940ec5ac5e1e8e7f0e9e1f3c4a0a0a1b2c3d4e5f"
ENTRYPOINT_ADDRESS = "0x5ff137d4b0fdcd49dca30c7cf57e578a026d2789"
PAYMASTER_ADDRESS = "0x7ba14d1e3cb4e5ee6f0e1a2b3c4d5e6f7a8b9c0d"
SESSION_MODULE_ADDRESS = "0xe544b7ad5a4f2c3c2a9a6e8d7b1f0c3d2e1f0a9b"
SESSION_FACTORY_ADDRESS = "0xb8c1d2e3f4a5b6c7d8e9f0a1b2c3d4e5f6a7b8c9"
SESSION_PROVIDER_ADDRESS = "0x4250526126491ef53ca4a73e97151b5c2597f43c"
CARD_MANAGER_ADDRESS = "0xba2f11c8b2e9d5d1a8e0f3c4b5a6978899aabbcc"
NODE_URL = "https://42220.engine.citizenwallet.xyz"

# hardhat test account #0
HARDHAT_PRIVATE_KEY = (
    "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
)
HARDHAT_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


def community_config_dict() -> dict:
    return {
        "community": {
            "name": "Gratitude Token",
            "description": "A community currency for gratitude",
            "url": "https://citizenwallet.xyz/gratitude",
            "alias": "gratitude",
            "logo": "https://assets.citizenwallet.xyz/gratitude.svg",
            "profile": {"address": PROFILE_ADDRESS, "chain_id": CHAIN_ID},
            "primary_token": {"address": TOKEN_ADDRESS, "chain_id": CHAIN_ID},
            "primary_account_factory": {
                "address": ACCOUNT_FACTORY_ADDRESS,
                "chain_id": CHAIN_ID,
            },
            "primary_session_manager": {
                "address": SESSION_MODULE_ADDRESS,
                "chain_id": CHAIN_ID,
            },
            "primary_card_manager": {
                "address": CARD_MANAGER_ADDRESS,
                "chain_id": CHAIN_ID,
            },
            "theme": {"primary": "#a256ff"},
        },
        "tokens": {
            f"{CHAIN_ID}:{TOKEN_ADDRESS}": {
                "standard": "erc20",
                "name": "Gratitude Token",
                "address": TOKEN_ADDRESS,
                "symbol": "GT",
                "decimals": 6,
                "chain_id": CHAIN_ID,
            }
        },
        "scan": {"url": "https://celoscan.io", "name": "Celo Explorer"},
        "accounts": {
            f"{CHAIN_ID}:{ACCOUNT_FACTORY_ADDRESS}": {
                "chain_id": CHAIN_ID,
                "entrypoint_address": ENTRYPOINT_ADDRESS,
                "paymaster_address": PAYMASTER_ADDRESS,
                "account_factory_address": ACCOUNT_FACTORY_ADDRESS,
                "paymaster_type": "cw",
            },
            f"{CHAIN_ID}:{SAFE_ACCOUNT_FACTORY_ADDRESS}": {
                "chain_id": CHAIN_ID,
                "entrypoint_address": ENTRYPOINT_ADDRESS,
                "paymaster_address": PAYMASTER_ADDRESS,
                "account_factory_address": SAFE_ACCOUNT_FACTORY_ADDRESS,
                "paymaster_type": "cw-safe",
            },
        },
        "sessions": {
            f"{CHAIN_ID}:{SESSION_MODULE_ADDRESS}": {
                "chain_id": CHAIN_ID,
                "module_address": SESSION_MODULE_ADDRESS,
                "factory_address": SESSION_FACTORY_ADDRESS,
                "provider_address": SESSION_PROVIDER_ADDRESS,
            }
        },
        "cards": {
            f"{CHAIN_ID}:{CARD_MANAGER_ADDRESS}": {
                "chain_id": CHAIN_ID,
                "address": CARD_MANAGER_ADDRESS,
                "type": "safe",
                "instance_id": "cw-gratitude",
            }
        },
        "chains": {
            str(CHAIN_ID): {
                "id": CHAIN_ID,
                "node": {
                    "url": NODE_URL,
                    "ws_url": "wss://42220.engine.citizenwallet.xyz",
                },
            }
        },
        "ipfs": {"url": "https://ipfs.internal.citizenwallet.xyz"},
        "plugins": [],
        "config_location": "https://config.internal.citizenwallet.xyz/gratitude.json",
        "version": 4,
    }


@pytest.fixture
def config_dict() -> dict:
    return community_config_dict()


@pytest.fixture
def community_config(config_dict) -> CommunityConfig:
    return CommunityConfig(config_dict)


@pytest.fixture
def signer():
    return Account.from_key(HARDHAT_PRIVATE_KEY)


@pytest.fixture
def other_signer():
    return Account.create()
