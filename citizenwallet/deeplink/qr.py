"""
QR payload sniffing and decoding.

Format detection is order sensitive, the first matching predicate wins.
Decoders return (address, amount, description, calldata); an empty address
means the payload could not be decoded.
"""
import logging
import re
from enum import Enum
from urllib.parse import parse_qs, urlsplit

from citizenwallet.utils.compression import decompress

WALLET_CONNECT_PATTERN = re.compile(
    r"^wc:[0-9a-fA-F]{64}@\d+\?relay-protocol=irn&symKey=[0-9a-fA-F]{64}$"
)

QRResult = tuple[str, str | None, str | None, str | None]
EMPTY_RESULT: QRResult = ("", None, None, None)


class QRFormat(Enum):
    address = "address"
    eip681 = "eip681"
    eip681_transfer = "eip681Transfer"
    sendto_url = "sendtoUrl"
    calldata_url = "calldataUrl"
    receive_url = "receiveUrl"
    voucher = "voucher"
    wallet_connect_pairing = "walletConnectPairing"
    unsupported = "unsupported"


def _is_http(raw: str) -> bool:
    return raw.startswith("https://") or raw.startswith("http://")


def parse_qr_format(raw: str) -> QRFormat:
    if raw.startswith("ethereum:") and "/" not in raw:
        return QRFormat.eip681
    if raw.startswith("ethereum:") and "/transfer" in raw:
        return QRFormat.eip681_transfer
    if _is_http(raw) and "sendto=" in raw:
        return QRFormat.sendto_url
    if _is_http(raw) and "calldata=" in raw:
        return QRFormat.calldata_url
    if raw.startswith("0x"):
        return QRFormat.address
    if "receiveParams=" in raw:
        return QRFormat.receive_url
    if "voucher=" in raw:
        return QRFormat.voucher
    if WALLET_CONNECT_PATTERN.match(raw):
        return QRFormat.wallet_connect_pairing
    return QRFormat.unsupported


def _query_params(query: str) -> dict[str, str]:
    return {
        key: values[0]
        for key, values in parse_qs(query.lstrip("?")).items()
    }


def _url_params(raw: str) -> dict[str, str]:
    return _query_params(urlsplit(raw.replace("#/", "")).query)


def parse_eip681(raw: str) -> QRResult:
    """ethereum:0xabc@100?value=1&message=hi"""
    body = raw[len("ethereum:"):]
    target, _, query = body.partition("?")
    address = target.split("@", 1)[0]
    if not address:
        return EMPTY_RESULT
    params = _query_params(query)
    amount = params.get("value") or params.get("amount")
    return (address, amount, params.get("message"), None)


def parse_eip681_transfer(raw: str) -> QRResult:
    """ethereum:0xtoken@100/transfer?address=0xabc&uint256=1"""
    _, _, query = raw.partition("?")
    params = _query_params(query)
    address = params.get("address")
    if not address:
        return EMPTY_RESULT
    return (address, params.get("uint256"), None, None)


def parse_sendto_url(raw: str) -> QRResult:
    params = _url_params(raw)
    sendto = params.get("sendto")
    if not sendto:
        return EMPTY_RESULT
    address = sendto.split("@", 1)[0]
    if not address:
        return EMPTY_RESULT
    return (address, params.get("amount"), params.get("description"), None)


def parse_calldata_url(raw: str) -> QRResult:
    params = _url_params(raw)
    address = params.get("address")
    if not address:
        return EMPTY_RESULT
    return (address, params.get("value"), None, params.get("calldata"))


def parse_receive_url(raw: str) -> QRResult:
    compressed = _url_params(raw).get("receiveParams")
    if not compressed:
        return EMPTY_RESULT
    try:
        params = _query_params(decompress(compressed))
    except Exception as excp:
        logging.warning(f"Unable to decompress receive params: {excp}")
        return EMPTY_RESULT
    address = params.get("address")
    if not address:
        return EMPTY_RESULT
    return (address, params.get("amount"), params.get("message"), None)


def parse_qr_code(raw: str) -> QRResult:
    qr_format = parse_qr_format(raw)
    if qr_format == QRFormat.eip681:
        return parse_eip681(raw)
    if qr_format == QRFormat.eip681_transfer:
        return parse_eip681_transfer(raw)
    if qr_format == QRFormat.sendto_url:
        return parse_sendto_url(raw)
    if qr_format == QRFormat.calldata_url:
        return parse_calldata_url(raw)
    if qr_format == QRFormat.address:
        return (raw, None, None, None)
    if qr_format == QRFormat.receive_url:
        return parse_receive_url(raw)
    # vouchers and pairing requests are not payment targets
    return EMPTY_RESULT
