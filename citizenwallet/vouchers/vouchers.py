"""
Bearer vouchers.

A voucher link carries the private key of a fresh signer together with the
metadata of the counterfactual account it owns. Whoever holds the link
controls the funds of that account.
"""
from dataclasses import dataclass
from urllib.parse import parse_qs, urlencode, urlsplit

from eth_account import Account
from eth_account.signers.local import LocalAccount

from citizenwallet.accounts.accounts import get_account_address
from citizenwallet.config.community_config import CommunityConfig
from citizenwallet.config.env import get_env_or_default
from citizenwallet.exceptions import InvalidVoucherError
from citizenwallet.typing import Address
from citizenwallet.utils.compression import compress, decompress

VOUCHER_KEY_PREFIX = "v2-"
PRIVATE_KEY_HEX_LENGTH = 64
DEFAULT_VOUCHER_NAME = "Voucher"
DEFAULT_APP_BASE_URL = "https://app.citizenwallet.xyz"


@dataclass(frozen=True)
class Voucher:
    alias: str
    creator: str
    account: str
    name: str = DEFAULT_VOUCHER_NAME


@dataclass(frozen=True)
class CreatedVoucher:
    voucher_link: str
    voucher_account_address: Address


def normalize_private_key(private_key: str) -> str:
    """
    64 hex characters without prefix. Some wallets serialize keys with a
    leading 00 sign byte, which is dropped; short keys are zero filled.
    """
    key = private_key.lower()
    if key.startswith("0x"):
        key = key[2:]
    while len(key) > PRIVATE_KEY_HEX_LENGTH and key.startswith("00"):
        key = key[2:]
    if len(key) != PRIVATE_KEY_HEX_LENGTH:
        key = key.zfill(PRIVATE_KEY_HEX_LENGTH)
    if len(key) != PRIVATE_KEY_HEX_LENGTH:
        raise InvalidVoucherError("Invalid voucher key length")
    return key


def encode_voucher_key(private_key: str) -> str:
    return compress(VOUCHER_KEY_PREFIX + normalize_private_key(private_key))


def decode_voucher_key(encoded_key: str) -> LocalAccount:
    try:
        decoded_key = decompress(encoded_key)
    except Exception:
        raise InvalidVoucherError("Invalid voucher key encoding")
    if decoded_key.startswith(VOUCHER_KEY_PREFIX):
        decoded_key = decoded_key[len(VOUCHER_KEY_PREFIX):]
    try:
        return Account.from_key("0x" + normalize_private_key(decoded_key))
    except InvalidVoucherError:
        raise
    except Exception:
        raise InvalidVoucherError("Invalid voucher key")


async def create_voucher(
    config: CommunityConfig,
    voucher_name: str,
    voucher_creator: Address,
    voucher_signer: LocalAccount,
    account_factory_address: Address | None = None,
    app_base_url: str | None = None,
) -> CreatedVoucher:
    """
    Nothing is written on chain, the voucher account stays counterfactual
    until it is funded and first used.
    """
    if app_base_url is None:
        app_base_url = get_env_or_default(
            "CW_APP_BASE_URL", DEFAULT_APP_BASE_URL)
    voucher_account_address = await get_account_address(
        config, Address(voucher_signer.address), 0, account_factory_address)
    if voucher_account_address is None:
        raise InvalidVoucherError(
            f"Unable to derive voucher account for {voucher_signer.address}")

    voucher_params = urlencode({
        "alias": config.community.alias,
        "creator": voucher_creator,
        "account": voucher_account_address,
        "name": voucher_name,
    })
    voucher_link = (
        f"{app_base_url.rstrip('/')}/#/?"
        f"voucher={encode_voucher_key(voucher_signer.key.hex())}"
        f"&params={compress(voucher_params)}"
    )
    return CreatedVoucher(voucher_link, voucher_account_address)


def _query_value(params: dict[str, list[str]], key: str) -> str:
    values = params.get(key)
    return values[0] if values else ""


def parse_voucher(data: str) -> tuple[Voucher, LocalAccount]:
    query = urlsplit(data.replace("#/", "")).query
    params = parse_qs(query)

    voucher_key = _query_value(params, "voucher")
    if not voucher_key:
        raise InvalidVoucherError()
    signer = decode_voucher_key(voucher_key)

    voucher_params = _query_value(params, "params")
    if not voucher_params:
        raise InvalidVoucherError()
    try:
        decoded_params = parse_qs(decompress(voucher_params).lstrip("?"))
    except Exception:
        raise InvalidVoucherError("Invalid voucher params encoding")

    voucher = Voucher(
        alias=_query_value(decoded_params, "alias"),
        creator=_query_value(decoded_params, "creator"),
        account=_query_value(decoded_params, "account"),
        name=_query_value(decoded_params, "name") or DEFAULT_VOUCHER_NAME,
    )
    if not voucher.alias or not voucher.creator or not voucher.account:
        raise InvalidVoucherError()
    return voucher, signer
