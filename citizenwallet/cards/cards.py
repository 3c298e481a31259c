"""
Card manager module.

Cards are accounts owned by an instance of the card manager. Instance
management and card calls are plain transactions sent by the instance
owner, not user operations.
"""
import logging

from eth_account.signers.local import LocalAccount
from eth_utils import keccak

from citizenwallet.calldata.calldata import encode_action
from citizenwallet.config.community_config import CardConfig, CommunityConfig
from citizenwallet.exceptions import ConfigLookupError
from citizenwallet.typing import Address, TransactionHash
from citizenwallet.utils.decode import decode_address
from citizenwallet.utils.encode import encode_function_call, hex_to_bytes
from citizenwallet.utils.eth_client_utils import (eth_call, send_transaction,
                                                  wait_for_transaction_receipt)

ZERO_ADDRESS = "0x" + "00" * 20


def card_instance_id(instance: str) -> str:
    return "0x" + keccak(text=instance).hex()


def _card_config(config: CommunityConfig) -> tuple[CardConfig, str]:
    card_config = config.primary_card_config
    if not card_config.instance_id:
        raise ConfigLookupError("No card instance id configured")
    return card_config, card_instance_id(card_config.instance_id)


async def _instance_owner(
    config: CommunityConfig, card_config: CardConfig, instance_id: str
) -> Address:
    call_data = encode_function_call(
        "instanceOwner", ["bytes32"], [hex_to_bytes(instance_id)])
    raw_result = await eth_call(
        config.primary_rpc_url, card_config.address, call_data)
    return Address(decode_address(raw_result))


async def create_instance(
    config: CommunityConfig, signer: LocalAccount
) -> Address | None:
    """Owner of the configured instance, created if it does not exist yet."""
    card_config, instance_id = _card_config(config)
    try:
        owner = await _instance_owner(config, card_config, instance_id)
        if owner != ZERO_ADDRESS:
            return owner

        transaction_hash = await send_transaction(
            config.primary_rpc_url,
            signer,
            card_config.address,
            encode_action("createInstance", instance_id),
            config.primary_network.id,
        )
        receipt = await wait_for_transaction_receipt(
            config.primary_rpc_url, transaction_hash)
        if receipt.get("status") != "0x1":
            logging.error(f"createInstance {transaction_hash} reverted")
            return None
        return await _instance_owner(config, card_config, instance_id)
    except Exception as excp:
        logging.error(f"Error creating instance: {excp}")
        return None


async def get_card_address(
    config: CommunityConfig, hashed_serial: str
) -> Address | None:
    card_config, instance_id = _card_config(config)
    call_data = encode_function_call(
        "getCardAddress",
        ["bytes32", "bytes32"],
        [hex_to_bytes(instance_id), hex_to_bytes(hashed_serial)],
    )
    try:
        raw_result = await eth_call(
            config.primary_rpc_url, card_config.address, call_data)
        return Address(decode_address(raw_result))
    except Exception as excp:
        logging.warning(f"Error fetching card address: {excp}")
        return None


async def call_on_card(
    config: CommunityConfig,
    signer: LocalAccount,
    hashed_serial: str,
    to: Address,
    value: int,
    data: bytes,
    rpc_url: str | None = None,
) -> TransactionHash | None:
    card_config, instance_id = _card_config(config)
    try:
        return await send_transaction(
            rpc_url or config.primary_rpc_url,
            signer,
            card_config.address,
            encode_action(
                "callOnCard", instance_id, hashed_serial, to, value, data),
            config.primary_network.id,
        )
    except Exception as excp:
        logging.error(f"Error calling on card: {excp}")
        return None
