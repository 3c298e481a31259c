from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount
from eth_utils import keccak

from citizenwallet.typing import Address
from citizenwallet.utils.decode import decode_bool
from citizenwallet.utils.encode import encode_function_call, hex_to_bytes
from citizenwallet.utils.eth_client_utils import eth_call

MINTER_ROLE = "0x" + keccak(text="MINTER_ROLE").hex()


def sign_hash(signer: LocalAccount, message_hash: str | bytes) -> str:
    """EIP-191 signature over the raw bytes of a 32 byte hash."""
    signed_message = signer.sign_message(
        encode_defunct(primitive=hex_to_bytes(message_hash))
    )
    return "0x" + signed_message.signature.hex()


def recover_hash_signer(message_hash: str | bytes, signature: str) -> Address:
    return Address(Account.recover_message(
        encode_defunct(primitive=hex_to_bytes(message_hash)),
        signature=hex_to_bytes(signature),
    ))


async def has_role(
    node_url: str, contract_address: Address, role: str, account: Address
) -> bool:
    call_data = encode_function_call(
        "hasRole", ["bytes32", "address"], [hex_to_bytes(role), account]
    )
    return decode_bool(await eth_call(node_url, contract_address, call_data))
