import re
from dataclasses import dataclass, field, replace

from citizenwallet.exceptions import SponsorshipError
from citizenwallet.typing import Address
from citizenwallet.utils.encode import ADDRESS_PATTERN


def to_minimal_hex(value: int) -> str:
    # json-rpc quantity, zero is "0x0"
    return hex(value)


def verify_and_get_uint(field_name: str, value: str | int | None) -> int:
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    if value == "0x":
        return 0
    elif isinstance(value, str) and value[:2] == "0x":
        try:
            return int(value, 16)
        except ValueError:
            raise SponsorshipError(
                f"Invalid uint hex value : {value} in field {field_name}",
            )
    raise SponsorshipError(
        f"Invalid uint hex value : {value} in field {field_name}",
    )


def verify_and_get_bytes(field_name: str, value: str | None) -> bytes:
    if isinstance(value, str) and value[:2] == "0x":
        try:
            return bytes.fromhex(value[2:])
        except ValueError:
            raise SponsorshipError(
                f"Invalid bytes hex value : {value} in field {field_name}",
            )
    raise SponsorshipError(
        f"Invalid bytes hex value : {value} in field {field_name}",
    )


def verify_and_get_address(field_name: str, value: str | None) -> Address:
    if isinstance(value, str) and re.match(ADDRESS_PATTERN, value) is not None:
        return Address(value)
    raise SponsorshipError(
        f"Invalid address value : {value} in field {field_name}",
    )


@dataclass
class UserOperation:
    """EntryPoint v0.6 user operation."""

    sender_address: Address
    nonce: int = 0
    init_code: bytes = b""
    call_data: bytes = b""
    call_gas_limit: int = 0
    verification_gas_limit: int = 0
    pre_verification_gas: int = 0
    max_fee_per_gas: int = 0
    max_priority_fee_per_gas: int = 0
    paymaster_and_data: bytes = b""
    signature: bytes = field(default=b"")

    @staticmethod
    def verify_fields_exist(json_user_operation: dict[str, str]) -> None:
        field_list = [
            "sender",
            "nonce",
            "initCode",
            "callData",
            "callGasLimit",
            "verificationGasLimit",
            "preVerificationGas",
            "maxFeePerGas",
            "maxPriorityFeePerGas",
            "paymasterAndData",
            "signature",
        ]

        for field_name in field_list:
            if field_name not in json_user_operation:
                raise SponsorshipError(
                    f"UserOperation missing {field_name} field",
                )

    @staticmethod
    def from_json(json_user_operation: dict[str, str]) -> "UserOperation":
        if not isinstance(json_user_operation, dict):
            raise SponsorshipError("Invalid UserOperation")
        UserOperation.verify_fields_exist(json_user_operation)
        return UserOperation(
            sender_address=verify_and_get_address(
                "sender", json_user_operation["sender"]),
            nonce=verify_and_get_uint(
                "nonce", json_user_operation["nonce"]),
            init_code=verify_and_get_bytes(
                "initCode", json_user_operation["initCode"]),
            call_data=verify_and_get_bytes(
                "callData", json_user_operation["callData"]),
            call_gas_limit=verify_and_get_uint(
                "callGasLimit", json_user_operation["callGasLimit"]),
            verification_gas_limit=verify_and_get_uint(
                "verificationGasLimit",
                json_user_operation["verificationGasLimit"]),
            pre_verification_gas=verify_and_get_uint(
                "preVerificationGas",
                json_user_operation["preVerificationGas"]),
            max_fee_per_gas=verify_and_get_uint(
                "maxFeePerGas", json_user_operation["maxFeePerGas"]),
            max_priority_fee_per_gas=verify_and_get_uint(
                "maxPriorityFeePerGas",
                json_user_operation["maxPriorityFeePerGas"]),
            paymaster_and_data=verify_and_get_bytes(
                "paymasterAndData", json_user_operation["paymasterAndData"]),
            signature=verify_and_get_bytes(
                "signature", json_user_operation["signature"]),
        )

    def get_user_operation_json(self) -> dict[str, str]:
        return {
            "sender": self.sender_address,
            "nonce": to_minimal_hex(self.nonce),
            "initCode": "0x" + self.init_code.hex(),
            "callData": "0x" + self.call_data.hex(),
            "callGasLimit": to_minimal_hex(self.call_gas_limit),
            "verificationGasLimit": to_minimal_hex(
                self.verification_gas_limit),
            "preVerificationGas": to_minimal_hex(self.pre_verification_gas),
            "maxFeePerGas": to_minimal_hex(self.max_fee_per_gas),
            "maxPriorityFeePerGas": to_minimal_hex(
                self.max_priority_fee_per_gas),
            "paymasterAndData": "0x" + self.paymaster_and_data.hex(),
            "signature": "0x" + self.signature.hex(),
        }

    def to_list(self) -> list[Address | int | bytes]:
        return [
            self.sender_address,
            self.nonce,
            self.init_code,
            self.call_data,
            self.call_gas_limit,
            self.verification_gas_limit,
            self.pre_verification_gas,
            self.max_fee_per_gas,
            self.max_priority_fee_per_gas,
            self.paymaster_and_data,
            self.signature,
        ]

    def with_signature(self, signature: bytes) -> "UserOperation":
        return replace(self, signature=signature)

    @property
    def is_executable(self) -> bool:
        return (
            len(self.call_data) > 0 and
            len(self.paymaster_and_data) > 0 and
            len(self.signature) > 0
        )

    @property
    def factory_address(self) -> Address | None:
        if len(self.init_code) >= 20:
            return Address("0x" + self.init_code[:20].hex())
        return None

    @property
    def paymaster_address(self) -> Address | None:
        if len(self.paymaster_and_data) >= 20:
            return Address("0x" + self.paymaster_and_data[:20].hex())
        return None


USER_OPERATION_TUPLE_TYPE = (
    "(address,uint256,bytes,bytes,uint256,uint256,uint256,uint256,uint256,bytes,bytes)"
)
