import json
import logging
from dataclasses import dataclass
from typing import Any

from aiohttp import ClientSession, FormData

from citizenwallet.config.env import get_env_or_default
from citizenwallet.exceptions import ConfigLookupError, PinningError
from citizenwallet.utils.eth_client_utils import DEFAULT_HTTP_TIMEOUT

PINATA_UPLOADS_BASE_URL = "https://uploads.pinata.cloud"
PINATA_API_BASE_URL = "https://api.pinata.cloud"


@dataclass(frozen=True)
class PinataOptions:
    jwt: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.jwt}"}

    @staticmethod
    def from_env() -> "PinataOptions":
        jwt = get_env_or_default("PINATA_JWT", None)
        if not jwt:
            raise ConfigLookupError("PINATA_JWT is not set")
        return PinataOptions(jwt)


@dataclass(frozen=True)
class PinataFile:
    """In-memory file to upload."""

    name: str
    content: bytes
    content_type: str = "application/octet-stream"


async def _upload(form_data: FormData, options: PinataOptions) -> str:
    async with ClientSession(timeout=DEFAULT_HTTP_TIMEOUT) as session:
        async with session.post(
            f"{PINATA_UPLOADS_BASE_URL}/v3/files",
            data=form_data,
            headers=options.headers,
        ) as response:
            if not 200 <= response.status < 300:
                error_text = await response.text()
                logging.error(f"Pinata upload failed: {error_text}")
                raise PinningError(
                    f"Failed to pin file to IPFS: {response.reason}")
            data = await response.json(content_type=None)
            return data["data"]["cid"]


async def pin_file_to_ipfs(
    file: PinataFile | str, options: PinataOptions
) -> str:
    """A string is already a cid and is returned as is."""
    if isinstance(file, str):
        return file
    form_data = FormData()
    form_data.add_field(
        "file", file.content, filename=file.name,
        content_type=file.content_type)
    form_data.add_field("network", "public")
    return await _upload(form_data, options)


async def pin_json_to_ipfs(
    data: dict[str, Any], name: str, options: PinataOptions
) -> str:
    form_data = FormData()
    form_data.add_field(
        "file",
        json.dumps(data).encode("utf-8"),
        filename=f"{name}.json",
        content_type="application/json",
    )
    form_data.add_field("network", "public")
    return await _upload(form_data, options)


async def unpin(cid: str, options: PinataOptions) -> None:
    async with ClientSession(timeout=DEFAULT_HTTP_TIMEOUT) as session:
        async with session.get(
            f"{PINATA_API_BASE_URL}/v3/files/public",
            params={"cid": cid},
            headers=options.headers,
        ) as response:
            if not 200 <= response.status < 300:
                raise PinningError(f"Failed to get file: {response.reason}")
            files = (await response.json(content_type=None))["data"]["files"]
        if len(files) == 0 or not files[0].get("id"):
            raise PinningError(f"File not found: {cid}")

        async with session.delete(
            f"{PINATA_API_BASE_URL}/v3/files/public/{files[0]['id']}",
            headers=options.headers,
        ) as response:
            if not 200 <= response.status < 300:
                raise PinningError(f"Failed to unpin: {response.reason}")
