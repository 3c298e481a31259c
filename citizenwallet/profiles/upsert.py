import asyncio
import logging
from dataclasses import dataclass

from eth_account.signers.local import LocalAccount

from citizenwallet.accounts.accounts import get_account_address
from citizenwallet.bundler.bundler_service import BundlerService
from citizenwallet.config.community_config import CommunityConfig
from citizenwallet.exceptions import PinningError
from citizenwallet.ipfs.ipfs import get_cid_from_uri
from citizenwallet.ipfs.pinata import (PinataFile, PinataOptions,
                                       pin_file_to_ipfs, pin_json_to_ipfs,
                                       unpin)
from citizenwallet.profiles.profiles import (Profile, ProfileWithTokenId,
                                             format_profile_image_links,
                                             get_profile_from_address,
                                             get_profile_uri_from_id)
from citizenwallet.typing import Address, UserOperationHash

IPFS_DOMAIN = "ipfs.internal.citizenwallet.xyz"
DEFAULT_PROFILE_IMAGE_IPFS_HASH = (
    "bafkreigngxh4cwk7nwbnipxwlo6kko4w3fokgkskqz2uhtdtjm73d6ddme"
)


@dataclass
class ProfileMetadata:
    username: str
    name: str | None = None
    description: str | None = None


@dataclass
class ProfileImages:
    """
    large is required, small (128x128) and medium (512x512) fall back to it.
    A string is taken as an already pinned cid.
    """

    large: PinataFile | str
    small: PinataFile | str | None = None
    medium: PinataFile | str | None = None


async def _profile_manager_address(
    config: CommunityConfig, signer: LocalAccount
) -> Address:
    address = await get_account_address(config, Address(signer.address))
    if address is None:
        raise ValueError("Failed to get profile manager address")
    return address


async def _unpin_all(cids: list[str], options: PinataOptions) -> None:
    results = await asyncio.gather(
        *[unpin(cid, options) for cid in cids], return_exceptions=True
    )
    for cid, result in zip(cids, results):
        if isinstance(result, Exception):
            logging.error(f"Failed to unpin {cid}: {result}")


async def _unpin_profile(
    config: CommunityConfig,
    existing_profile: ProfileWithTokenId,
    options: PinataOptions,
) -> None:
    """Unpins the superseded metadata and non default images."""
    to_unpin = []
    uri = await get_profile_uri_from_id(
        config, int(existing_profile.token_id))
    if uri:
        to_unpin.append(get_cid_from_uri(uri))
    for image in (
        existing_profile.image_small,
        existing_profile.image_medium,
        existing_profile.image,
    ):
        if not image:
            continue
        cid = get_cid_from_uri(image)
        if cid != DEFAULT_PROFILE_IMAGE_IPFS_HASH:
            to_unpin.append(cid)
    await _unpin_all(to_unpin, options)


async def upsert_profile(
    config: CommunityConfig,
    signer: LocalAccount,
    pinata_options: PinataOptions,
    account: Address,
    metadata: ProfileMetadata,
    images: ProfileImages | None = None,
    parent: str | None = None,
) -> UserOperationHash:
    """Pins the new profile, unpins the old one and points the contract
    at the new metadata."""
    existing_profile = await get_profile_from_address(config, account)
    profile_manager_address = await _profile_manager_address(config, signer)

    default_image = f"ipfs://{DEFAULT_PROFILE_IMAGE_IPFS_HASH}"
    image_small = image_medium = image_large = default_image
    if images is not None:
        image_small = "ipfs://" + await pin_file_to_ipfs(
            images.small or images.large, pinata_options)
        image_medium = "ipfs://" + await pin_file_to_ipfs(
            images.medium or images.large, pinata_options)
        image_large = "ipfs://" + await pin_file_to_ipfs(
            images.large, pinata_options)

    profile = Profile(
        account=account,
        username=metadata.username.lower(),
        name=metadata.name or metadata.username,
        description=metadata.description or "",
        image=image_large,
        image_medium=image_medium,
        image_small=image_small,
        parent=parent or None,
    )
    formatted_profile = format_profile_image_links(
        f"https://{IPFS_DOMAIN}", profile)

    profile_cid = await pin_json_to_ipfs(
        formatted_profile.to_json(), profile.username, pinata_options)
    if not profile_cid:
        raise PinningError("Failed to pin profile")

    if existing_profile is not None:
        await _unpin_profile(config, existing_profile, pinata_options)

    bundler = BundlerService(config)
    return await bundler.set_profile(
        signer,
        profile_manager_address,
        profile.account,
        profile.username,
        profile_cid,
    )


async def delete_profile(
    config: CommunityConfig,
    signer: LocalAccount,
    pinata_options: PinataOptions,
    account: Address,
) -> UserOperationHash | None:
    existing_profile = await get_profile_from_address(config, account)
    if existing_profile is None:
        return None

    profile_manager_address = await _profile_manager_address(config, signer)
    await _unpin_profile(config, existing_profile, pinata_options)

    bundler = BundlerService(config)
    return await bundler.burn_profile(
        signer, profile_manager_address, account)
