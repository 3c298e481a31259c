"""
Two step session authorization.

A session owner signs a request hash that commits to the provider, the owner,
a salt derived from the out-of-band source and an expiry. The provider hands
out a challenge out-of-band; the session hash commits to the request hash and
that challenge. Hashes are abi encoded then keccak'd so that every client
derives the same values.
"""
import logging
import time

from eth_abi import decode, encode
from eth_account.signers.local import LocalAccount
from eth_utils import keccak

from citizenwallet.bundler.bundler_service import BundlerService
from citizenwallet.calldata.calldata import encode_action
from citizenwallet.config.community_config import CommunityConfig
from citizenwallet.exceptions import (ChallengeExpiredError,
                                      InvalidSessionError,
                                      SessionExpiredError)
from citizenwallet.typing import Address, HexBytes32, UserOperationHash
from citizenwallet.utils.crypto import recover_hash_signer, sign_hash
from citizenwallet.utils.decode import decode_address, decode_bool
from citizenwallet.utils.encode import encode_function_call, hex_to_bytes
from citizenwallet.utils.eth_client_utils import eth_call

CHALLENGE_EXPIRY_SECONDS = 120
SESSION_REQUEST_RECORD_TYPES = ["uint48", "uint48", "bytes", "bytes32", "bytes"]


def current_timestamp() -> int:
    return int(time.time())


def generate_session_salt(source: str, session_type: str) -> HexBytes32:
    return HexBytes32("0x" + keccak(text=f"{source}:{session_type}").hex())


def generate_session_request_hash(
    config: CommunityConfig,
    session_owner: Address,
    salt: str | bytes,
    expiry: int,
) -> HexBytes32:
    provider = config.primary_session_config.provider_address
    encoded = encode(
        ["address", "address", "bytes32", "uint48"],
        [provider, session_owner, hex_to_bytes(salt), expiry],
    )
    return HexBytes32("0x" + keccak(encoded).hex())


def generate_session_hash(
    session_request_hash: str | bytes, challenge: int | str
) -> HexBytes32:
    encoded = encode(
        ["bytes32", "uint256"],
        [hex_to_bytes(session_request_hash), int(challenge)],
    )
    return HexBytes32("0x" + keccak(encoded).hex())


def _signed_by(message_hash: str, signature: str, signer: Address) -> bool:
    try:
        recovered = recover_hash_signer(message_hash, signature)
    except Exception as excp:
        logging.warning(f"Unable to recover session signer: {excp}")
        return False
    return recovered.lower() == signer.lower()


def verify_session_request(
    config: CommunityConfig,
    session_owner: Address,
    source: str,
    session_type: str,
    expiry: int,
    signature: str,
) -> bool:
    salt = generate_session_salt(source, session_type)
    session_request_hash = generate_session_request_hash(
        config, session_owner, salt, expiry)
    return _signed_by(session_request_hash, signature, session_owner)


def verify_session_confirm(
    session_owner: Address, session_hash: str, signed_session_hash: str
) -> bool:
    return _signed_by(session_hash, signed_session_hash, session_owner)


async def request_session(
    config: CommunityConfig,
    signer: LocalAccount,
    session_salt: str,
    session_request_hash: str,
    signed_session_request_hash: str,
    signed_session_hash: str,
    session_expiry: int,
) -> UserOperationHash:
    """Submitted by the provider account, challenge valid for two minutes."""
    session_config = config.primary_session_config
    challenge_expiry = current_timestamp() + CHALLENGE_EXPIRY_SECONDS
    call_data = encode_action(
        "sessionRequest",
        session_salt,
        session_request_hash,
        signed_session_request_hash,
        signed_session_hash,
        session_expiry,
        challenge_expiry,
    )
    bundler = BundlerService(config)
    return await bundler.call(
        signer,
        session_config.module_address,
        session_config.provider_address,
        call_data,
    )


async def verify_incoming_session_request(
    config: CommunityConfig,
    signer: LocalAccount,
    session_request_hash: str,
    session_hash: str,
) -> bool:
    """
    Reads the stored request and checks that the stored session hash
    signature equals the one this signer produces for session_hash.
    Expired sessions and challenges raise even when signatures match.
    """
    session_config = config.primary_session_config
    call_data = encode_function_call(
        "sessionRequests",
        ["address", "bytes32"],
        [session_config.provider_address, hex_to_bytes(session_request_hash)],
    )
    raw_result = await eth_call(
        config.primary_rpc_url, session_config.module_address, call_data)
    if len(raw_result) == 0:
        raise InvalidSessionError("Session request not found")
    try:
        expiry, challenge_expiry, stored_signed_session_hash, _, _ = decode(
            SESSION_REQUEST_RECORD_TYPES, raw_result)
    except Exception:
        raise InvalidSessionError("Session request not found")
    if expiry == 0:
        raise InvalidSessionError("Session request not found")

    now = current_timestamp()
    if now >= expiry:
        raise SessionExpiredError()
    if now >= challenge_expiry:
        raise ChallengeExpiredError()

    calculated_signed_session_hash = hex_to_bytes(
        sign_hash(signer, session_hash))
    return stored_signed_session_hash == calculated_signed_session_hash


async def confirm_session(
    config: CommunityConfig,
    signer: LocalAccount,
    session_request_hash: str,
    session_hash: str,
    signed_session_hash: str,
) -> UserOperationHash:
    session_config = config.primary_session_config
    call_data = encode_action(
        "sessionConfirm",
        session_request_hash,
        session_hash,
        signed_session_hash,
    )
    bundler = BundlerService(config)
    return await bundler.call(
        signer,
        session_config.module_address,
        session_config.provider_address,
        call_data,
    )


async def is_session_expired(
    config: CommunityConfig, account: Address, owner: Address
) -> bool:
    """Unknown state is reported as expired."""
    session_config = config.primary_session_config
    call_data = encode_function_call(
        "isExpired", ["address", "address"], [account, owner])
    try:
        raw_result = await eth_call(
            config.primary_rpc_url, session_config.module_address, call_data)
        return decode_bool(raw_result)
    except Exception as excp:
        logging.warning(f"isExpired check for {account} failed: {excp}")
        return True


async def revoke_session(
    config: CommunityConfig, signer: LocalAccount, account: Address
) -> UserOperationHash:
    """The account revokes the session key held by signer."""
    session_config = config.primary_session_config
    bundler = BundlerService(config)
    return await bundler.call_action(
        signer,
        account,
        session_config.module_address,
        "sessionRevoke",
        Address(signer.address),
    )


async def get_two_fa_address(
    config: CommunityConfig, source: str, session_type: str
) -> Address | None:
    session_config = config.primary_session_config
    salt = generate_session_salt(source, session_type)
    call_data = encode_function_call(
        "getAddress",
        ["address", "uint256"],
        [session_config.provider_address, int(salt, 16)],
    )
    try:
        raw_result = await eth_call(
            config.primary_rpc_url, session_config.factory_address, call_data)
        return Address(decode_address(raw_result))
    except Exception as excp:
        logging.warning(f"Error fetching two factor address: {excp}")
        return None
