from urllib.parse import urlencode

from citizenwallet.config.community_config import CommunityConfig
from citizenwallet.typing import Address
from citizenwallet.utils.compression import compress


def parse_alias_from_domain(domain: str, base_path: str) -> str:
    """gratitude.citizenwallet.xyz -> gratitude, unknown domains are kept."""
    if domain.endswith(base_path):
        alias = domain[:-len(base_path)]
        return alias[:-1] if alias.endswith(".") else alias
    return domain


def generate_receive_link(
    base_url: str,
    account: Address,
    alias: str,
    amount: str | None = None,
    description: str | None = None,
    tip_to: Address | None = None,
    tip_amount: str | None = None,
    tip_description: str | None = None,
) -> str:
    params = {"alias": alias, "sendto": f"{account}@{alias}"}
    if amount:
        params["amount"] = amount
    if description:
        params["description"] = description
    if tip_to and tip_amount:
        params["tipTo"] = tip_to
        params["tipAmount"] = tip_amount
        if tip_description:
            params["tipDescription"] = tip_description
    return f"{base_url.rstrip('/')}/?{urlencode(params)}"


def generate_legacy_receive_link(
    base_url: str,
    config: CommunityConfig,
    account: Address,
    amount: str | None = None,
    description: str | None = None,
) -> str:
    alias = config.community.alias
    receive_params = f"?address={account}&alias={alias}"
    if amount:
        receive_params += f"&amount={amount}"
    if description:
        receive_params += f"&message={description}"
    return (
        f"{base_url.rstrip('/')}/#/?alias={alias}"
        f"&receiveParams={compress(receive_params)}"
    )


def generate_calldata_link(
    base_url: str,
    config: CommunityConfig,
    address: Address,
    value: int,
    calldata: bytes | str,
) -> str:
    if isinstance(calldata, bytes):
        calldata = "0x" + calldata.hex()
    params = {
        "alias": config.community.alias,
        "address": address,
        "value": str(value),
        "calldata": calldata,
    }
    return f"{base_url.rstrip('/')}/?{urlencode(params)}"
