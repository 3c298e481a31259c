import logging
from dataclasses import dataclass

from citizenwallet.config.community_config import CommunityConfig
from citizenwallet.typing import Address
from citizenwallet.utils.decode import decode_string, decode_uint
from citizenwallet.utils.encode import encode_function_call
from citizenwallet.utils.eth_client_utils import eth_call
from citizenwallet.utils.units import format_units, parse_units

__all__ = [
    "TokenMetadata",
    "format_units",
    "get_token_balance",
    "get_token_decimals",
    "get_token_metadata",
    "get_token_name",
    "get_token_symbol",
    "parse_units",
]


@dataclass(frozen=True)
class TokenMetadata:
    decimals: int | None
    name: str | None
    symbol: str | None


async def _token_call(config: CommunityConfig, call_data: bytes) -> bytes:
    return await eth_call(
        config.primary_rpc_url, config.primary_token.address, call_data)


async def get_token_decimals(config: CommunityConfig) -> int | None:
    try:
        return decode_uint(await _token_call(
            config, encode_function_call("decimals", [], [])))
    except Exception as excp:
        logging.warning(f"Error fetching token decimals: {excp}")
        return None


async def get_token_name(config: CommunityConfig) -> str | None:
    try:
        return decode_string(await _token_call(
            config, encode_function_call("name", [], [])))
    except Exception as excp:
        logging.warning(f"Error fetching token name: {excp}")
        return None


async def get_token_symbol(config: CommunityConfig) -> str | None:
    try:
        return decode_string(await _token_call(
            config, encode_function_call("symbol", [], [])))
    except Exception as excp:
        logging.warning(f"Error fetching token symbol: {excp}")
        return None


async def get_token_metadata(config: CommunityConfig) -> TokenMetadata:
    return TokenMetadata(
        decimals=await get_token_decimals(config),
        name=await get_token_name(config),
        symbol=await get_token_symbol(config),
    )


async def get_token_balance(
    config: CommunityConfig, address: Address
) -> int | None:
    try:
        return decode_uint(await _token_call(
            config,
            encode_function_call("balanceOf", ["address"], [address])))
    except Exception as excp:
        logging.warning(f"Error fetching balance of {address}: {excp}")
        return None
