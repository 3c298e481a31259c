from eth_abi import decode
from eth_utils import to_checksum_address


def decode_address(raw_result: bytes) -> str:
    return to_checksum_address(decode(["address"], raw_result)[0])


def decode_uint(raw_result: bytes) -> int:
    return decode(["uint256"], raw_result)[0]


def decode_bool(raw_result: bytes) -> bool:
    return decode(["bool"], raw_result)[0]


def decode_string(raw_result: bytes) -> str:
    return decode(["string"], raw_result)[0]
