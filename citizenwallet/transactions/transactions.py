import logging

from citizenwallet.config.community_config import CommunityConfig
from citizenwallet.utils.eth_client_utils import wait_for_transaction_receipt


async def wait_for_tx_success(
    config: CommunityConfig, tx_hash: str, timeout: float = 12
) -> bool:
    try:
        receipt = await wait_for_transaction_receipt(
            config.primary_rpc_url, tx_hash, timeout)
    except Exception as excp:
        logging.warning(f"Error waiting for transaction {tx_hash}: {excp}")
        return False
    return receipt.get("status") == "0x1"
