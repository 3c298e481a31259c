"""
Calldata encoding table.

Every action produces the inner contract call, which is then wrapped once in
the envelope matching the sender account variant:

- plain accounts execute ``execute(address,uint256,bytes)``
- safe-module accounts execute
  ``execTransactionFromModule(address,uint256,bytes,uint8)`` with operation 0
"""
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Mapping

from citizenwallet.config.community_config import AccountVariant
from citizenwallet.profiles.utils import format_username_to_bytes32
from citizenwallet.typing import Address
from citizenwallet.utils.encode import (encode_function_call, hex_to_bytes,
                                        verify_and_get_address)

SAFE_OPERATION_CALL = 0


@dataclass(frozen=True)
class ActionEncoder:
    function_name: str
    argument_types: tuple[str, ...]
    prepare_arguments: Callable[..., list[Any]]
    address_arguments: tuple[int, ...] = ()

    def encode(self, *args) -> bytes:
        arguments = self.prepare_arguments(*args)
        for index in self.address_arguments:
            verify_and_get_address(
                f"{self.function_name}[{index}]", arguments[index])
        return encode_function_call(
            self.function_name, list(self.argument_types), arguments
        )


def _as_list(*args) -> list[Any]:
    return list(args)


def _profile_set_arguments(
    profile_account: Address, username: str, ipfs_hash: str
) -> list[Any]:
    return [profile_account, format_username_to_bytes32(username), ipfs_hash]


def _role_arguments(role: str | bytes, account: Address) -> list[Any]:
    return [hex_to_bytes(role), account]


def _call_on_card_arguments(
    instance_id: str | bytes,
    hashed_serial: str | bytes,
    to: Address,
    value: int,
    data: bytes,
) -> list[Any]:
    return [
        hex_to_bytes(instance_id), hex_to_bytes(hashed_serial), to, value,
        hex_to_bytes(data)
    ]


def _create_instance_arguments(instance_id: str | bytes) -> list[Any]:
    return [hex_to_bytes(instance_id)]


def _session_request_arguments(
    salt: str | bytes,
    request_hash: str | bytes,
    signed_request_hash: str | bytes,
    signed_session_hash: str | bytes,
    expiry: int,
    challenge_expiry: int,
) -> list[Any]:
    return [
        hex_to_bytes(salt), hex_to_bytes(request_hash),
        hex_to_bytes(signed_request_hash), hex_to_bytes(signed_session_hash),
        expiry, challenge_expiry
    ]


def _session_confirm_arguments(
    request_hash: str | bytes,
    session_hash: str | bytes,
    signed_session_hash: str | bytes,
) -> list[Any]:
    return [
        hex_to_bytes(request_hash), hex_to_bytes(session_hash),
        hex_to_bytes(signed_session_hash)
    ]


def build_action_registry() -> Mapping[str, ActionEncoder]:
    return MappingProxyType({
        "transfer": ActionEncoder(
            "transfer", ("address", "uint256"), _as_list, (0,)),
        "mint": ActionEncoder(
            "mint", ("address", "uint256"), _as_list, (0,)),
        "burnFrom": ActionEncoder(
            "burnFrom", ("address", "uint256"), _as_list, (0,)),
        "approve": ActionEncoder(
            "approve", ("address", "uint256"), _as_list, (0,)),
        "setProfile": ActionEncoder(
            "set", ("address", "bytes32", "string"),
            _profile_set_arguments, (0,)),
        "burnProfile": ActionEncoder(
            "burn", ("address",), _as_list, (0,)),
        "grantRole": ActionEncoder(
            "grantRole", ("bytes32", "address"), _role_arguments, (1,)),
        "revokeRole": ActionEncoder(
            "revokeRole", ("bytes32", "address"), _role_arguments, (1,)),
        "createInstance": ActionEncoder(
            "createInstance", ("bytes32",), _create_instance_arguments),
        "callOnCard": ActionEncoder(
            "callOnCard",
            ("bytes32", "bytes32", "address", "uint256", "bytes"),
            _call_on_card_arguments, (2,)),
        "sessionRequest": ActionEncoder(
            "request",
            ("bytes32", "bytes32", "bytes", "bytes", "uint48", "uint48"),
            _session_request_arguments),
        "sessionConfirm": ActionEncoder(
            "confirm", ("bytes32", "bytes32", "bytes"),
            _session_confirm_arguments),
        "sessionRevoke": ActionEncoder(
            "revoke", ("address",), _as_list, (0,)),
    })


ACTIONS: Mapping[str, ActionEncoder] = build_action_registry()


def encode_action(
    action: str, *args, registry: Mapping[str, ActionEncoder] = ACTIONS
) -> bytes:
    if action not in registry:
        raise KeyError(f"Unknown calldata action {action}")
    return registry[action].encode(*args)


def execute_call_data(
    contract_address: Address, call_data: bytes | str, value: int = 0
) -> bytes:
    verify_and_get_address("execute.dest", contract_address)
    return encode_function_call(
        "execute",
        ["address", "uint256", "bytes"],
        [contract_address, value, hex_to_bytes(call_data)],
    )


def exec_transaction_from_module_call_data(
    contract_address: Address, call_data: bytes | str, value: int = 0
) -> bytes:
    verify_and_get_address("execTransactionFromModule.to", contract_address)
    return encode_function_call(
        "execTransactionFromModule",
        ["address", "uint256", "bytes", "uint8"],
        [contract_address, value, hex_to_bytes(call_data), SAFE_OPERATION_CALL],
    )


def wrap_call_data(
    variant: AccountVariant,
    contract_address: Address,
    call_data: bytes | str,
    value: int = 0,
) -> bytes:
    if variant == AccountVariant.safe_module:
        return exec_transaction_from_module_call_data(
            contract_address, call_data, value)
    return execute_call_data(contract_address, call_data, value)


def account_call_data(
    variant: AccountVariant,
    contract_address: Address,
    action: str,
    *args,
    registry: Mapping[str, ActionEncoder] = ACTIONS,
) -> bytes:
    inner_call_data = encode_action(action, *args, registry=registry)
    return wrap_call_data(variant, contract_address, inner_call_data)


def token_transfer_call_data(to: Address, value: int) -> bytes:
    return encode_action("transfer", to, value)


def transfer_call_data(
    variant: AccountVariant, token_address: Address, receiver: Address,
    amount: int
) -> bytes:
    return account_call_data(
        variant, token_address, "transfer", receiver, amount)


def mint_call_data(
    variant: AccountVariant, token_address: Address, receiver: Address,
    amount: int
) -> bytes:
    return account_call_data(variant, token_address, "mint", receiver, amount)


def burn_from_call_data(
    variant: AccountVariant, token_address: Address, account: Address,
    amount: int
) -> bytes:
    return account_call_data(
        variant, token_address, "burnFrom", account, amount)


def approve_call_data(
    variant: AccountVariant, token_address: Address, issuer: Address,
    amount: int
) -> bytes:
    return account_call_data(variant, token_address, "approve", issuer, amount)


def profile_call_data(
    variant: AccountVariant,
    profile_contract_address: Address,
    profile_account_address: Address,
    username: str,
    ipfs_hash: str,
) -> bytes:
    return account_call_data(
        variant, profile_contract_address, "setProfile",
        profile_account_address, username, ipfs_hash)


def burn_profile_call_data(
    variant: AccountVariant,
    profile_contract_address: Address,
    profile_account_address: Address,
) -> bytes:
    return account_call_data(
        variant, profile_contract_address, "burnProfile",
        profile_account_address)


def grant_role_call_data(
    variant: AccountVariant, contract_address: Address, role: str,
    account: Address
) -> bytes:
    return account_call_data(
        variant, contract_address, "grantRole", role, account)


def revoke_role_call_data(
    variant: AccountVariant, contract_address: Address, role: str,
    account: Address
) -> bytes:
    return account_call_data(
        variant, contract_address, "revokeRole", role, account)
