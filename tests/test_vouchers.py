from unittest.mock import AsyncMock, patch

import pytest

from citizenwallet.exceptions import InvalidVoucherError
from citizenwallet.utils.compression import compress
from citizenwallet.vouchers.vouchers import (create_voucher,
                                             decode_voucher_key,
                                             encode_voucher_key,
                                             normalize_private_key,
                                             parse_voucher)

from conftest import HARDHAT_ADDRESS, HARDHAT_PRIVATE_KEY

MODULE = "citizenwallet.vouchers.vouchers"
VOUCHER_ACCOUNT = "0x4250526126491EF53ca4A73e97151b5c2597F43c"
CREATOR = "0x9ED0d8b1b5a0a52A2c5a0B5b0A8C1C1d5B8f1e42"
KEY = HARDHAT_PRIVATE_KEY[2:]


def test_normalize_private_key():
    assert normalize_private_key(HARDHAT_PRIVATE_KEY) == KEY
    assert normalize_private_key("0x00" + KEY) == KEY
    assert normalize_private_key("0x" + KEY[2:]) == "00" + KEY[2:]


def test_normalize_keeps_inner_zero_bytes():
    key = "ab00" + "cd" * 30
    assert normalize_private_key(key) == key
    assert normalize_private_key("00" + key) == key


def test_voucher_key_round_trip():
    signer = decode_voucher_key(encode_voucher_key(HARDHAT_PRIVATE_KEY))
    assert signer.address == HARDHAT_ADDRESS


def test_decode_legacy_voucher_key():
    # keys encoded before the v2- prefix was introduced
    signer = decode_voucher_key(compress(KEY))
    assert signer.address == HARDHAT_ADDRESS


@pytest.mark.asyncio
async def test_create_and_parse_voucher(community_config, other_signer):
    get_account_address = AsyncMock(return_value=VOUCHER_ACCOUNT)
    with patch(f"{MODULE}.get_account_address", get_account_address):
        created = await create_voucher(
            community_config, "Lunch voucher", CREATOR, other_signer,
            app_base_url="https://app.citizenwallet.xyz/")

    assert created.voucher_account_address == VOUCHER_ACCOUNT
    assert created.voucher_link.startswith(
        "https://app.citizenwallet.xyz/#/?voucher=")
    get_account_address.assert_awaited_once()

    voucher, signer = parse_voucher(created.voucher_link)
    assert voucher.alias == "gratitude"
    assert voucher.creator == CREATOR
    assert voucher.account == VOUCHER_ACCOUNT
    assert voucher.name == "Lunch voucher"
    assert signer.address == other_signer.address


@pytest.mark.asyncio
async def test_create_voucher_without_account(community_config, signer):
    with patch(f"{MODULE}.get_account_address",
               AsyncMock(return_value=None)):
        with pytest.raises(InvalidVoucherError):
            await create_voucher(community_config, "Lunch", CREATOR, signer)


def test_parse_voucher_missing_parts():
    voucher_key = encode_voucher_key(HARDHAT_PRIVATE_KEY)
    with pytest.raises(InvalidVoucherError):
        parse_voucher("https://app.citizenwallet.xyz/#/?alias=gratitude")
    with pytest.raises(InvalidVoucherError):
        parse_voucher(f"https://app.citizenwallet.xyz/#/?voucher={voucher_key}")

    params = compress(f"creator={CREATOR}&account={VOUCHER_ACCOUNT}")
    with pytest.raises(InvalidVoucherError):
        parse_voucher(
            "https://app.citizenwallet.xyz/#/"
            f"?voucher={voucher_key}&params={params}")


def test_parse_voucher_default_name():
    voucher_key = encode_voucher_key(HARDHAT_PRIVATE_KEY)
    params = compress(
        f"alias=gratitude&creator={CREATOR}&account={VOUCHER_ACCOUNT}")
    voucher, _ = parse_voucher(
        f"https://app.citizenwallet.xyz/#/?voucher={voucher_key}"
        f"&params={params}")
    assert voucher.name == "Voucher"


def test_parse_voucher_bad_key():
    with pytest.raises(InvalidVoucherError):
        parse_voucher("https://app.citizenwallet.xyz/#/?voucher=notakey")
