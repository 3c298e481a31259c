from typing import Any

from aiohttp import ClientSession

from citizenwallet.utils.eth_client_utils import DEFAULT_HTTP_TIMEOUT

IPFS_SCHEME = "ipfs://"


def get_cid_from_uri(uri: str) -> str:
    """ipfs://<cid> and https://<gateway>/<cid> both give <cid>."""
    if uri.startswith(IPFS_SCHEME):
        return uri[len(IPFS_SCHEME):]
    return uri.rstrip("/").split("/")[-1]


def ipfs_gateway_url(ipfs_url: str, uri: str) -> str:
    if uri.startswith("http"):
        return uri
    if not ipfs_url.startswith("http"):
        ipfs_url = f"https://{ipfs_url}"
    return f"{ipfs_url.rstrip('/')}/{get_cid_from_uri(uri)}"


async def download_json_from_ipfs(ipfs_url: str, uri: str) -> Any:
    url = ipfs_gateway_url(ipfs_url, uri)
    async with ClientSession(timeout=DEFAULT_HTTP_TIMEOUT) as session:
        async with session.get(url) as response:
            response.raise_for_status()
            return await response.json(content_type=None)
