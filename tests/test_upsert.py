from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from citizenwallet.exceptions import PinningError
from citizenwallet.ipfs.pinata import PinataFile, PinataOptions
from citizenwallet.profiles.profiles import ProfileWithTokenId
from citizenwallet.profiles.upsert import (DEFAULT_PROFILE_IMAGE_IPFS_HASH,
                                           ProfileImages, ProfileMetadata,
                                           delete_profile, upsert_profile)

MODULE = "citizenwallet.profiles.upsert"
ACCOUNT = "0x4250526126491EF53ca4A73e97151b5c2597F43c"
MANAGER_ACCOUNT = "0x9406Cc6185a346906296840746125a0E44976454"
GATEWAY = "https://ipfs.internal.citizenwallet.xyz"
OPTIONS = PinataOptions(jwt="pinata-jwt")


def existing_profile(image_cid: str = "QmOldImage") -> ProfileWithTokenId:
    return ProfileWithTokenId(
        account=ACCOUNT,
        username="alice",
        name="Alice",
        image=f"{GATEWAY}/{image_cid}",
        image_medium=f"{GATEWAY}/{image_cid}",
        image_small=f"{GATEWAY}/{DEFAULT_PROFILE_IMAGE_IPFS_HASH}",
        token_id="42",
    )


def bundler_mock():
    bundler = MagicMock()
    bundler.set_profile = AsyncMock(return_value="0xuserophash")
    bundler.burn_profile = AsyncMock(return_value="0xburnhash")
    return MagicMock(return_value=bundler), bundler


@pytest.mark.asyncio
async def test_upsert_new_profile(community_config, signer):
    """
    Test a first profile is pinned with the default image and set on chain
    """
    bundler_class, bundler = bundler_mock()
    pin_json = AsyncMock(return_value="QmNewProfile")
    unpin = AsyncMock()
    with patch(f"{MODULE}.get_profile_from_address",
               AsyncMock(return_value=None)), \
            patch(f"{MODULE}.get_account_address",
                  AsyncMock(return_value=MANAGER_ACCOUNT)), \
            patch(f"{MODULE}.pin_json_to_ipfs", pin_json), \
            patch(f"{MODULE}.unpin", unpin), \
            patch(f"{MODULE}.BundlerService", bundler_class):
        result = await upsert_profile(
            community_config, signer, OPTIONS, ACCOUNT,
            ProfileMetadata(username="Alice"))

    assert result == "0xuserophash"
    unpin.assert_not_awaited()

    pinned, name, _ = pin_json.await_args.args
    assert name == "alice"
    assert pinned["name"] == "Alice"
    assert pinned["image"] == f"{GATEWAY}/{DEFAULT_PROFILE_IMAGE_IPFS_HASH}"
    assert "parent" not in pinned

    bundler.set_profile.assert_awaited_once_with(
        signer, MANAGER_ACCOUNT, ACCOUNT, "alice", "QmNewProfile")


@pytest.mark.asyncio
async def test_upsert_replaces_existing_profile(community_config, signer):
    """
    Test the superseded profile is unpinned except for the default image,
    and a failed unpin does not abort the update
    """
    bundler_class, bundler = bundler_mock()
    pin_file = AsyncMock(side_effect=["QmSmall", "QmMedium", "QmLarge"])
    pin_json = AsyncMock(return_value="QmNewProfile")
    unpin = AsyncMock(side_effect=[None, PinningError("gone"), None])
    large = PinataFile(name="large.png", content=b"png")
    with patch(f"{MODULE}.get_profile_from_address",
               AsyncMock(return_value=existing_profile())), \
            patch(f"{MODULE}.get_account_address",
                  AsyncMock(return_value=MANAGER_ACCOUNT)), \
            patch(f"{MODULE}.get_profile_uri_from_id",
                  AsyncMock(return_value="ipfs://QmOldProfile")), \
            patch(f"{MODULE}.pin_file_to_ipfs", pin_file), \
            patch(f"{MODULE}.pin_json_to_ipfs", pin_json), \
            patch(f"{MODULE}.unpin", unpin), \
            patch(f"{MODULE}.BundlerService", bundler_class):
        await upsert_profile(
            community_config, signer, OPTIONS, ACCOUNT,
            ProfileMetadata(username="alice", name="Alice B."),
            images=ProfileImages(large=large), parent="0xparent")

    assert [call.args[0] for call in pin_file.await_args_list] == [
        large, large, large]
    pinned = pin_json.await_args.args[0]
    assert pinned["image"] == f"{GATEWAY}/QmLarge"
    assert pinned["image_small"] == f"{GATEWAY}/QmSmall"
    assert pinned["parent"] == "0xparent"

    unpinned = [call.args[0] for call in unpin.await_args_list]
    assert unpinned == ["QmOldProfile", "QmOldImage", "QmOldImage"]
    assert DEFAULT_PROFILE_IMAGE_IPFS_HASH not in unpinned
    bundler.set_profile.assert_awaited_once()


@pytest.mark.asyncio
async def test_upsert_aborts_when_pinning_fails(community_config, signer):
    bundler_class, bundler = bundler_mock()
    with patch(f"{MODULE}.get_profile_from_address",
               AsyncMock(return_value=None)), \
            patch(f"{MODULE}.get_account_address",
                  AsyncMock(return_value=MANAGER_ACCOUNT)), \
            patch(f"{MODULE}.pin_json_to_ipfs", AsyncMock(return_value="")), \
            patch(f"{MODULE}.BundlerService", bundler_class):
        with pytest.raises(PinningError):
            await upsert_profile(
                community_config, signer, OPTIONS, ACCOUNT,
                ProfileMetadata(username="alice"))
    bundler.set_profile.assert_not_awaited()


@pytest.mark.asyncio
async def test_delete_profile(community_config, signer):
    bundler_class, bundler = bundler_mock()
    unpin = AsyncMock()
    with patch(f"{MODULE}.get_profile_from_address",
               AsyncMock(return_value=existing_profile())), \
            patch(f"{MODULE}.get_account_address",
                  AsyncMock(return_value=MANAGER_ACCOUNT)), \
            patch(f"{MODULE}.get_profile_uri_from_id",
                  AsyncMock(return_value=None)), \
            patch(f"{MODULE}.unpin", unpin), \
            patch(f"{MODULE}.BundlerService", bundler_class):
        result = await delete_profile(
            community_config, signer, OPTIONS, ACCOUNT)

    assert result == "0xburnhash"
    assert unpin.await_count == 2
    bundler.burn_profile.assert_awaited_once_with(
        signer, MANAGER_ACCOUNT, ACCOUNT)


@pytest.mark.asyncio
async def test_delete_missing_profile(community_config, signer):
    bundler_class, bundler = bundler_mock()
    with patch(f"{MODULE}.get_profile_from_address",
               AsyncMock(return_value=None)), \
            patch(f"{MODULE}.BundlerService", bundler_class):
        assert await delete_profile(
            community_config, signer, OPTIONS, ACCOUNT) is None
    bundler.burn_profile.assert_not_awaited()
