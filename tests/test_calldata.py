import pytest
from eth_abi import decode

from citizenwallet.calldata.calldata import (ACTIONS, account_call_data,
                                             encode_action,
                                             token_transfer_call_data,
                                             wrap_call_data)
from citizenwallet.config.community_config import AccountVariant
from citizenwallet.exceptions import InvalidAddressError
from citizenwallet.utils.crypto import MINTER_ROLE

TOKEN = "0x5815e61ef72c9e6107b5c5a05fd121f334f7a7f1"
PROFILE = "0xa6ac8d16eb0b8b3da3b6e4b5c2e1d8f1c7e3a0b1"
RECEIVER = "0x4250526126491ef53ca4a73e97151b5c2597f43c"

EXECUTE_SELECTOR = bytes.fromhex("b61d27f6")
EXEC_FROM_MODULE_SELECTOR = bytes.fromhex("468721a7")

ACTION_CASES = [
    ("transfer", TOKEN, (RECEIVER, 10_500_000), "a9059cbb"),
    ("mint", TOKEN, (RECEIVER, 1), "40c10f19"),
    ("burnFrom", TOKEN, (RECEIVER, 1), None),
    ("approve", TOKEN, (RECEIVER, 1), None),
    ("setProfile", PROFILE, (RECEIVER, "@alice", "QmHash"), None),
    ("burnProfile", PROFILE, (RECEIVER,), None),
    ("grantRole", TOKEN, (MINTER_ROLE, RECEIVER), None),
    ("revokeRole", TOKEN, (MINTER_ROLE, RECEIVER), None),
]


def unwrap(call_data: bytes) -> tuple[bytes, tuple]:
    selector = call_data[:4]
    if selector == EXECUTE_SELECTOR:
        return selector, decode(["address", "uint256", "bytes"], call_data[4:])
    if selector == EXEC_FROM_MODULE_SELECTOR:
        return selector, decode(
            ["address", "uint256", "bytes", "uint8"], call_data[4:])
    raise AssertionError(f"unexpected envelope {selector.hex()}")


@pytest.mark.parametrize("action,target,args,inner_selector", ACTION_CASES)
def test_variant_changes_only_the_envelope(
    action, target, args, inner_selector
):
    plain = account_call_data(AccountVariant.plain, target, action, *args)
    safe = account_call_data(
        AccountVariant.safe_module, target, action, *args)

    plain_selector, plain_args = unwrap(plain)
    safe_selector, safe_args = unwrap(safe)

    assert plain_selector == EXECUTE_SELECTOR
    assert safe_selector == EXEC_FROM_MODULE_SELECTOR
    assert plain_args[0].lower() == target
    assert safe_args[0].lower() == target
    assert plain_args[1] == safe_args[1] == 0
    # operation is always a plain call
    assert safe_args[3] == 0
    # inner action calldata is identical for both variants
    assert plain_args[2] == safe_args[2] == encode_action(action, *args)
    if inner_selector is not None:
        assert plain_args[2][:4].hex() == inner_selector


def test_transfer_inner_encoding():
    inner = token_transfer_call_data(RECEIVER, 10_500_000)
    assert inner[:4].hex() == "a9059cbb"
    to, value = decode(["address", "uint256"], inner[4:])
    assert to.lower() == RECEIVER
    assert value == 10_500_000


def test_set_profile_pads_username():
    inner = encode_action("setProfile", RECEIVER, "@alice", "QmHash")
    account, username, uri = decode(
        ["address", "bytes32", "string"], inner[4:])
    assert username == b" " * 27 + b"alice"
    assert uri == "QmHash"


def test_role_is_encoded_as_bytes32():
    inner = encode_action("grantRole", MINTER_ROLE, RECEIVER)
    role, account = decode(["bytes32", "address"], inner[4:])
    assert "0x" + role.hex() == (
        "0x9f2df0fed2c77648de5860a4cc508cd0818c85b8b8a1ab4ceeef8d981c8956a6")


def test_session_actions():
    salt = "0x" + "11" * 32
    request_hash = "0x" + "22" * 32
    inner = encode_action(
        "sessionRequest", salt, request_hash, "0x" + "33" * 65,
        "0x" + "44" * 65, 1767225600, 1767225720)
    decoded = decode(
        ["bytes32", "bytes32", "bytes", "bytes", "uint48", "uint48"],
        inner[4:])
    assert decoded[4:] == (1767225600, 1767225720)
    assert encode_action("sessionRevoke", RECEIVER)[4:] == (
        bytes(12) + bytes.fromhex(RECEIVER[2:]))


def test_card_actions():
    instance_id = "0x" + "aa" * 32
    inner = encode_action(
        "callOnCard", instance_id, "0x" + "bb" * 32, RECEIVER, 5, b"\x01\x02")
    decoded = decode(
        ["bytes32", "bytes32", "address", "uint256", "bytes"], inner[4:])
    assert decoded[3] == 5
    assert decoded[4] == b"\x01\x02"


def test_invalid_address_is_rejected():
    with pytest.raises(InvalidAddressError):
        account_call_data(
            AccountVariant.plain, TOKEN, "transfer", "0x1234", 1)
    with pytest.raises(InvalidAddressError):
        wrap_call_data(AccountVariant.safe_module, "not an address", b"")


def test_unknown_action():
    with pytest.raises(KeyError):
        encode_action("selfdestruct")


def test_registry_is_immutable():
    with pytest.raises(TypeError):
        ACTIONS["transfer"] = ACTIONS["mint"]
