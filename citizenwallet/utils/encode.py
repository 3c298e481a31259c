import re
from functools import cache
from typing import Any

from eth_abi import encode
from eth_utils import function_signature_to_4byte_selector

from citizenwallet.exceptions import InvalidAddressError
from citizenwallet.typing import Address

ADDRESS_PATTERN = "^0x[0-9a-fA-F]{40}$"


@cache
def function_selector(function_signature: str) -> bytes:
    return function_signature_to_4byte_selector(function_signature)


def encode_function_call(
    function_name: str, argument_types: list[str], arguments: list[Any]
) -> bytes:
    signature = f"{function_name}({','.join(argument_types)})"
    return function_selector(signature) + encode(argument_types, arguments)


def verify_and_get_address(field_name: str, value: Address | str | None) -> Address:
    if isinstance(value, str) and re.match(ADDRESS_PATTERN, value) is not None:
        return Address(value)
    raise InvalidAddressError(
        f"Invalid address value : {value} in field {field_name}"
    )


def hex_to_bytes(value: str | bytes) -> bytes:
    if isinstance(value, bytes):
        return value
    if value[:2] == "0x":
        value = value[2:]
    return bytes.fromhex(value)
