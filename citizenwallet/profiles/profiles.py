import logging
import random
import string
from dataclasses import asdict, dataclass, replace
from typing import Any

from citizenwallet.config.community_config import CommunityConfig
from citizenwallet.config.env import get_env_or_default
from citizenwallet.exceptions import UsernameUnavailableError
from citizenwallet.ipfs.ipfs import IPFS_SCHEME, download_json_from_ipfs
from citizenwallet.profiles.utils import format_username_to_bytes32
from citizenwallet.typing import Address
from citizenwallet.utils.decode import decode_string, decode_uint
from citizenwallet.utils.encode import encode_function_call
from citizenwallet.utils.eth_client_utils import eth_call

USERNAME_SUFFIX_LENGTH = 3
MAX_USERNAME_ATTEMPTS = 10


@dataclass
class Profile:
    account: str
    username: str
    name: str = ""
    description: str = ""
    image: str = ""
    image_medium: str = ""
    image_small: str = ""
    parent: str | None = None

    @staticmethod
    def from_json(json_profile: dict[str, Any]) -> "Profile":
        return Profile(
            account=json_profile["account"],
            username=json_profile["username"],
            name=json_profile.get("name", ""),
            description=json_profile.get("description", ""),
            image=json_profile.get("image", ""),
            image_medium=json_profile.get("image_medium", ""),
            image_small=json_profile.get("image_small", ""),
            parent=json_profile.get("parent"),
        )

    def to_json(self) -> dict[str, Any]:
        json_profile = asdict(self)
        if self.parent is None:
            del json_profile["parent"]
        return json_profile


@dataclass
class ProfileWithTokenId(Profile):
    token_id: str = ""


def _gateway_link(ipfs_url: str, uri: str) -> str:
    if uri.startswith(IPFS_SCHEME):
        return f"{ipfs_url.rstrip('/')}/{uri[len(IPFS_SCHEME):]}"
    return uri


def format_profile_image_links(ipfs_url: str, profile: Profile) -> Profile:
    """ipfs:// image links rewritten to the gateway."""
    return replace(
        profile,
        image=_gateway_link(ipfs_url, profile.image),
        image_medium=_gateway_link(ipfs_url, profile.image_medium),
        image_small=_gateway_link(ipfs_url, profile.image_small),
    )


def _ipfs_url(config: CommunityConfig) -> str:
    return get_env_or_default("IPFS_URL", config.ipfs_url)


async def _profile_call(config: CommunityConfig, call_data: bytes) -> bytes:
    return await eth_call(
        config.primary_rpc_url, config.community.profile_address, call_data)


async def get_profile_uri_from_id(
    config: CommunityConfig, token_id: int
) -> str | None:
    call_data = encode_function_call("tokenURI", ["uint256"], [token_id])
    try:
        return decode_string(await _profile_call(config, call_data))
    except Exception as excp:
        logging.warning(f"Error fetching profile uri of {token_id}: {excp}")
        return None


def _profile_with_token_id(
    config: CommunityConfig, json_profile: dict[str, Any], token_id: int
) -> ProfileWithTokenId:
    profile = format_profile_image_links(
        _ipfs_url(config), Profile.from_json(json_profile))
    return ProfileWithTokenId(**asdict(profile), token_id=str(token_id))


async def get_profile_from_id(
    config: CommunityConfig, token_id: int | str
) -> ProfileWithTokenId | None:
    try:
        call_data = encode_function_call(
            "tokenURI", ["uint256"], [int(token_id)])
        uri = decode_string(await _profile_call(config, call_data))
        if not uri:
            return None
        json_profile = await download_json_from_ipfs(_ipfs_url(config), uri)
        return _profile_with_token_id(config, json_profile, int(token_id))
    except Exception as excp:
        logging.warning(f"Error fetching profile {token_id}: {excp}")
        return None


async def get_profile_from_address(
    config: CommunityConfig, address: Address
) -> ProfileWithTokenId | None:
    call_data = encode_function_call(
        "fromAddressToId", ["address"], [address])
    try:
        token_id = decode_uint(await _profile_call(config, call_data))
    except Exception as excp:
        logging.warning(f"Error fetching profile of {address}: {excp}")
        return None
    if token_id == 0:
        return None
    return await get_profile_from_id(config, token_id)


async def get_profile_from_username(
    config: CommunityConfig, username: str
) -> ProfileWithTokenId | None:
    call_data = encode_function_call(
        "getFromUsername", ["bytes32"],
        [format_username_to_bytes32(username)])
    try:
        uri = decode_string(await _profile_call(config, call_data))
        if not uri:
            return None
        json_profile = await download_json_from_ipfs(_ipfs_url(config), uri)
        id_call_data = encode_function_call(
            "fromAddressToId", ["address"], [json_profile["account"]])
        token_id = decode_uint(await _profile_call(config, id_call_data))
        return _profile_with_token_id(config, json_profile, token_id)
    except Exception as excp:
        logging.warning(f"Error fetching profile of {username}: {excp}")
        return None


async def is_username_available(
    config: CommunityConfig, username: str
) -> bool:
    return await get_profile_from_username(config, username) is None


def _random_suffix(length: int = USERNAME_SUFFIX_LENGTH) -> str:
    return "".join(random.choices(string.ascii_lowercase, k=length))


async def generate_unique_username(
    config: CommunityConfig,
    base_username: str,
    max_attempts: int = MAX_USERNAME_ATTEMPTS,
) -> str:
    """
    base_username if free, otherwise base_username with random letters
    appended. Gives up after max_attempts lookups.
    """
    base_username = base_username.lstrip("@").lower()
    candidate = base_username
    for _ in range(max_attempts):
        if await is_username_available(config, candidate):
            return candidate
        candidate = f"{base_username}{_random_suffix()}"
    raise UsernameUnavailableError(
        f"No available username for {base_username} "
        f"after {max_attempts} attempts")
