import logging
from dataclasses import dataclass
from typing import Any

from aiohttp import ClientSession
from eth_account.signers.local import LocalAccount

from citizenwallet.config.community_config import CommunityConfig
from citizenwallet.exceptions import InvalidChallengeError, SessionRequestError
from citizenwallet.session.session import (current_timestamp,
                                           generate_session_hash,
                                           generate_session_request_hash,
                                           generate_session_salt)
from citizenwallet.typing import Address, TransactionHash
from citizenwallet.utils.crypto import sign_hash
from citizenwallet.utils.eth_client_utils import DEFAULT_HTTP_TIMEOUT

SESSION_EXPIRY_SECONDS = 60 * 60 * 24 * 365


@dataclass
class SessionRequestResult:
    tx_hash: TransactionHash
    hash: str


async def _read_json(response) -> dict[str, Any]:
    try:
        body = await response.json(content_type=None)
    except Exception:
        return {}
    return body if isinstance(body, dict) else {}


def _backend_error(body: dict[str, Any], status: int) -> SessionRequestError:
    message = body.get("error") or body.get("message")
    if message:
        return SessionRequestError(f"Backend error: {message}", status)
    return SessionRequestError(f"HTTP error! status: {status}", status)


async def send_session_request(
    url: str,
    config: CommunityConfig,
    signer: LocalAccount,
    source: str,
    session_type: str,
) -> SessionRequestResult:
    """
    Signs a session request valid for one year and posts it to the session
    backend, which answers with the on-chain request transaction.
    """
    session_owner = Address(signer.address)
    expiry = current_timestamp() + SESSION_EXPIRY_SECONDS
    salt = generate_session_salt(source, session_type)
    session_request_hash = generate_session_request_hash(
        config, session_owner, salt, expiry)

    request_body = {
        "provider": config.primary_session_config.provider_address,
        "owner": session_owner,
        "source": source,
        "type": session_type,
        "expiry": expiry,
        "signature": sign_hash(signer, session_request_hash),
    }

    async with ClientSession(timeout=DEFAULT_HTTP_TIMEOUT) as session:
        async with session.post(url, json=request_body) as response:
            body = await _read_json(response)
            if response.status == 400:
                logging.error("Session request rejected as bad request")
                raise InvalidChallengeError()
            if not 200 <= response.status < 300:
                logging.error(
                    f"Failed to create session request. "
                    f"status: {response.status}")
                raise _backend_error(body, response.status)

    tx_hash = body.get("sessionRequestTxHash")
    if tx_hash is None:
        message = body.get("error") or body.get("message")
        if message:
            raise SessionRequestError(f"Backend error: {message}")
        raise SessionRequestError(
            "There may already be a pending code for this number. "
            "Please check your messages or wait a moment before trying again."
        )
    return SessionRequestResult(
        tx_hash=TransactionHash(tx_hash), hash=session_request_hash)


async def confirm_session_request(
    url: str,
    config: CommunityConfig,
    signer: LocalAccount,
    session_request_hash: str,
    challenge: int | str,
) -> TransactionHash:
    session_hash = generate_session_hash(session_request_hash, challenge)
    request_body = {
        "provider": config.primary_session_config.provider_address,
        "owner": signer.address,
        "sessionRequestHash": session_request_hash,
        "sessionHash": session_hash,
        "signedSessionHash": sign_hash(signer, session_hash),
    }

    async with ClientSession(timeout=DEFAULT_HTTP_TIMEOUT) as session:
        async with session.patch(url, json=request_body) as response:
            body = await _read_json(response)
            if not 200 <= response.status < 300:
                logging.error(
                    f"Failed to confirm session. status: {response.status}")
                raise _backend_error(body, response.status)

    tx_hash = body.get("sessionConfirmTxHash")
    if tx_hash is None:
        raise SessionRequestError("Missing sessionConfirmTxHash in response")
    return TransactionHash(tx_hash)
