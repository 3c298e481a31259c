import logging
from datetime import datetime, timezone
from typing import Mapping, cast
from urllib.parse import parse_qsl, quote, urlencode

from eth_account.signers.local import LocalAccount
from eth_utils import keccak, to_checksum_address

from citizenwallet.accounts.accounts import verify_account_ownership
from citizenwallet.config.community_config import CommunityConfig
from citizenwallet.exceptions import (ConnectionExpiredError,
                                      InvalidConnectionError)
from citizenwallet.typing import Address
from citizenwallet.utils.crypto import sign_hash

HEADER_ACCOUNT = "x-sigauth-account"
HEADER_EXPIRY = "x-sigauth-expiry"
HEADER_SIGNATURE = "x-sigauth-signature"
HEADER_REDIRECT = "x-sigauth-redirect"

PARAM_ACCOUNT = "sigAuthAccount"
PARAM_EXPIRY = "sigAuthExpiry"
PARAM_SIGNATURE = "sigAuthSignature"
PARAM_REDIRECT = "sigAuthRedirect"

# same reserved set as javascript encodeURIComponent
URI_COMPONENT_SAFE_CHARACTERS = "!~*'()"
MILLISECONDS_THRESHOLD = 10**12


def generate_connection_message(
    account_address: Address | str,
    expiry_timestamp: str,
    redirect_url: str | None = None,
) -> str:
    message = (
        f"Signature auth for {to_checksum_address(account_address)} "
        f"with expiry {expiry_timestamp}"
    )
    if redirect_url:
        message += (
            " and redirect "
            + quote(redirect_url, safe=URI_COMPONENT_SAFE_CHARACTERS)
        )
    return "0x" + keccak(text=message).hex()


def parse_expiry(expiry_timestamp: str) -> datetime:
    """
    Unix seconds, unix milliseconds or ISO-8601.
    Timestamps without a timezone are read as UTC.
    """
    value = expiry_timestamp.strip()
    try:
        if value.isdigit():
            seconds = int(value)
            if seconds > MILLISECONDS_THRESHOLD:
                seconds = seconds // 1000
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        expiry = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, OverflowError, OSError):
        raise InvalidConnectionError(
            f"Invalid connection request: bad expiry {expiry_timestamp}")
    if expiry.tzinfo is None:
        expiry = expiry.replace(tzinfo=timezone.utc)
    return expiry


def is_expired(expiry_timestamp: str, now: datetime | None = None) -> bool:
    if now is None:
        now = datetime.now(timezone.utc)
    return parse_expiry(expiry_timestamp) < now


def generate_connected_headers(
    signer: LocalAccount,
    account_address: Address | str,
    expiry_timestamp: str,
    redirect_url: str | None = None,
) -> dict[str, str | None]:
    message = generate_connection_message(
        account_address, expiry_timestamp, redirect_url)
    return {
        HEADER_ACCOUNT: account_address,
        HEADER_EXPIRY: expiry_timestamp,
        HEADER_SIGNATURE: sign_hash(signer, message),
        HEADER_REDIRECT: redirect_url,
    }


def create_connected_url(
    url: str,
    signer: LocalAccount,
    account_address: Address | str,
    expiry_timestamp: str,
    redirect_url: str | None = None,
) -> str:
    message = generate_connection_message(
        account_address, expiry_timestamp, redirect_url)
    params = {
        PARAM_ACCOUNT: account_address,
        PARAM_EXPIRY: expiry_timestamp,
        PARAM_SIGNATURE: sign_hash(signer, message),
    }
    if redirect_url:
        params[PARAM_REDIRECT] = redirect_url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{urlencode(params)}"


def _required_fields(fields: dict[str, str | None]) -> list[str]:
    missing = [name for name, value in fields.items() if not value]
    if missing:
        raise InvalidConnectionError(
            f"Invalid connection request: missing {', '.join(missing)}")
    return [cast(str, value) for value in fields.values()]


async def verify_connected_headers(
    config: CommunityConfig, headers: Mapping[str, str]
) -> Address:
    """Returns the connected account or raises."""
    normalized = {key.lower(): value for key, value in headers.items()}
    account, expiry, signature = _required_fields({
        HEADER_ACCOUNT: normalized.get(HEADER_ACCOUNT),
        HEADER_EXPIRY: normalized.get(HEADER_EXPIRY),
        HEADER_SIGNATURE: normalized.get(HEADER_SIGNATURE),
    })
    redirect = normalized.get(HEADER_REDIRECT) or None

    if is_expired(expiry):
        raise ConnectionExpiredError()

    message = generate_connection_message(account, expiry, redirect)
    if not await verify_account_ownership(
        config, Address(account), message, signature
    ):
        raise InvalidConnectionError(
            "Invalid signature or account ownership verification failed")
    return Address(account)


async def verify_connected_url(
    config: CommunityConfig,
    url: str | None = None,
    params: Mapping[str, str] | None = None,
) -> Address | None:
    """Returns the connected account, None when ownership does not verify."""
    if params is None:
        if url is None:
            raise InvalidConnectionError(
                "Either url or params must be provided")
        query = url.split("?", 1)[1] if "?" in url else ""
        params = dict(parse_qsl(query))

    account, expiry, signature = _required_fields({
        PARAM_ACCOUNT: params.get(PARAM_ACCOUNT),
        PARAM_EXPIRY: params.get(PARAM_EXPIRY),
        PARAM_SIGNATURE: params.get(PARAM_SIGNATURE),
    })
    redirect = params.get(PARAM_REDIRECT) or None

    if is_expired(expiry):
        raise ConnectionExpiredError()

    message = generate_connection_message(account, expiry, redirect)
    verified = await verify_account_ownership(
        config, Address(account), message, signature)
    if not verified:
        logging.warning(f"Connection verification failed for {account}")
        return None
    return Address(account)
