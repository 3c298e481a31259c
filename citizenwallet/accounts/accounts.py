import logging

from eth_account.messages import defunct_hash_message
from eth_utils import to_checksum_address

from citizenwallet.config.community_config import CommunityConfig
from citizenwallet.typing import Address
from citizenwallet.utils.crypto import recover_hash_signer
from citizenwallet.utils.decode import decode_address, decode_bool, decode_uint
from citizenwallet.utils.encode import encode_function_call, hex_to_bytes
from citizenwallet.utils.eth_client_utils import eth_call

EIP1271_MAGIC_VALUE = bytes.fromhex("1626ba7e")


async def get_account_address(
    config: CommunityConfig,
    owner: Address,
    salt: int = 0,
    account_factory_address: Address | None = None,
) -> Address | None:
    """Counterfactual account address of owner, None when the lookup fails."""
    call_data = encode_function_call(
        "getAddress", ["address", "uint256"], [owner, salt]
    )
    try:
        account_config = config.get_account_config(account_factory_address)
        raw_result = await eth_call(
            config.get_rpc_url(account_factory_address),
            account_config.account_factory_address,
            call_data,
        )
        return Address(decode_address(raw_result))
    except Exception as excp:
        logging.warning(f"Error fetching account address of {owner}: {excp}")
        return None


async def get_account_balance(
    config: CommunityConfig, address: Address
) -> int | None:
    call_data = encode_function_call("balanceOf", ["address"], [address])
    try:
        raw_result = await eth_call(
            config.primary_rpc_url,
            config.primary_token.address,
            call_data,
        )
        return decode_uint(raw_result)
    except Exception as excp:
        logging.warning(f"Error fetching balance of {address}: {excp}")
        return None


async def _is_valid_eip1271_signature(
    rpc_url: str, account: Address, message_hash: bytes, signature: bytes
) -> bool:
    call_data = encode_function_call(
        "isValidSignature", ["bytes32", "bytes"], [message_hash, signature]
    )
    raw_result = await eth_call(rpc_url, account, call_data)
    return raw_result[:4] == EIP1271_MAGIC_VALUE


async def _is_safe_owner(
    rpc_url: str, account: Address, owner: Address
) -> bool:
    call_data = encode_function_call("isOwner", ["address"], [owner])
    return decode_bool(await eth_call(rpc_url, account, call_data))


async def _account_owner(rpc_url: str, account: Address) -> Address:
    call_data = encode_function_call("owner", [], [])
    return Address(decode_address(await eth_call(rpc_url, account, call_data)))


async def verify_account_ownership(
    config: CommunityConfig,
    account_address: Address,
    message_hash: str | bytes,
    signature: str,
) -> bool:
    """
    Checks that signature over message_hash (EIP-191) is authorized for
    account_address, trying in order:

    1. the signer is the address itself (EOA)
    2. the account accepts the signature through EIP-1271
    3. the signer is a Safe owner of the account
    4. the signer is the owner() of the account

    Every failure, including rpc errors, counts as not verified.
    """
    try:
        recovered = recover_hash_signer(message_hash, signature)
    except Exception as excp:
        logging.warning(f"Unable to recover signer: {excp}")
        return False

    if recovered.lower() == account_address.lower():
        return True

    rpc_url = config.primary_rpc_url
    account = Address(to_checksum_address(account_address))
    eip191_hash = bytes(
        defunct_hash_message(primitive=hex_to_bytes(message_hash)))

    try:
        if await _is_valid_eip1271_signature(
            rpc_url, account, eip191_hash, hex_to_bytes(signature)
        ):
            return True
    except Exception as excp:
        logging.debug(f"isValidSignature check on {account} failed: {excp}")

    try:
        if await _is_safe_owner(rpc_url, account, recovered):
            return True
    except Exception as excp:
        logging.debug(f"isOwner check on {account} failed: {excp}")

    try:
        owner = await _account_owner(rpc_url, account)
        return owner.lower() == recovered.lower()
    except Exception as excp:
        logging.warning(f"owner check on {account} failed: {excp}")
        return False
