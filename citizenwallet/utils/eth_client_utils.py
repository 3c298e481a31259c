import asyncio
import json
import logging
import math
import traceback
from typing import Any

from aiohttp import ClientSession, ClientTimeout
from eth_account.signers.local import LocalAccount

from citizenwallet.exceptions import RpcError, TransactionFailedError
from citizenwallet.typing import Address, TransactionHash

DEFAULT_HTTP_TIMEOUT = ClientTimeout(total=30)
NUMBER_OF_RETRY_ATTEMPTS = 3


def _json_rpc_request(method: str, params) -> dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "id": 1,
        "method": method,
        "params": params if params is not None else [],
    }


async def send_rpc_request_to_eth_client(
    node_url: str,
    method: str,
    params=None,
    retries: int = NUMBER_OF_RETRY_ATTEMPTS,
) -> Any:
    """
    Read-only json-rpc call with a bounded number of attempts.
    Transport failures are retried, json-rpc errors are returned as is.
    """
    json_request = _json_rpc_request(method, params)
    headers = {"content-type": "application/json"}
    for i in range(retries):
        try:
            async with ClientSession(timeout=DEFAULT_HTTP_TIMEOUT) as session:
                async with session.post(
                    node_url,
                    json=json_request,
                    headers=headers
                ) as response:
                    resp = await response.read()
                    return json.loads(resp)
        except json.decoder.JSONDecodeError:
            logging.error(
                f"Attempt No. {i+1} to call node rpc {method} failed. "
                "Invalid json response from eth client."
            )
        except Exception as excp:
            logging.error(
                f"Attempt No. {i+1} to call node rpc {method} failed. "
                f"error: {str(excp)}"
            )
            logging.debug(f"traceback: {str(traceback.format_exc())}")
        if i + 1 < retries:
            await asyncio.sleep(1)
    raise RpcError(f"Failed rpc request {method} to {node_url}")


async def send_rpc_request_to_eth_client_no_retry(
    node_url: str,
    method: str,
    params=None,
) -> Any:
    json_request = _json_rpc_request(method, params)
    headers = {"content-type": "application/json"}
    async with ClientSession(timeout=DEFAULT_HTTP_TIMEOUT) as session:
        async with session.post(
            node_url,
            json=json_request,
            headers=headers
        ) as response:
            try:
                resp = await response.read()
                return json.loads(resp)
            except json.decoder.JSONDecodeError:
                logging.critical("Invalid json response from eth client")
                raise RpcError("Invalid json response from eth client")


async def get_http_status(url: str) -> int:
    async with ClientSession(timeout=DEFAULT_HTTP_TIMEOUT) as session:
        async with session.get(url) as response:
            return response.status


async def eth_call(
    node_url: str, to: Address, call_data: str | bytes
) -> bytes:
    if isinstance(call_data, bytes):
        call_data = "0x" + call_data.hex()
    params = [
        {
            "to": to,
            "data": call_data,
        },
        "latest",
    ]
    result: Any = await send_rpc_request_to_eth_client(
        node_url, "eth_call", params
    )
    if "result" in result:
        return bytes.fromhex(result["result"][2:])
    if "error" in result:
        raise RpcError(f"eth_call to {to} failed - {str(result['error'])}")
    raise RpcError(f"eth_call to {to} failed")


async def get_transaction_receipt(
    node_url: str, transaction_hash: str
) -> dict | None:
    res: Any = await send_rpc_request_to_eth_client(
        node_url, "eth_getTransactionReceipt", [transaction_hash]
    )
    if "error" in res:
        raise RpcError(
            f"eth_getTransactionReceipt failed - {str(res['error'])}")
    return res.get("result")


async def wait_for_transaction_receipt(
    node_url: str,
    transaction_hash: str,
    timeout: float = 12,
    poll_interval: float = 1,
) -> dict:
    """
    Poll until the transaction has one confirmation or the timeout passes.
    A missing receipt at the deadline is a terminal failure.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while True:
        receipt = await get_transaction_receipt(node_url, transaction_hash)
        if receipt is not None and receipt.get("blockNumber") is not None:
            return receipt
        remaining = deadline - loop.time()
        if remaining <= 0:
            raise TransactionFailedError(
                f"Transaction {transaction_hash} not confirmed "
                f"after {timeout} seconds"
            )
        await asyncio.sleep(min(poll_interval, remaining))


async def send_transaction(
    node_url: str,
    signer: LocalAccount,
    to: Address,
    data: bytes,
    chain_id: int,
    value: int = 0,
) -> TransactionHash:
    call_data = "0x" + data.hex()
    tasks: Any = await asyncio.gather(
        send_rpc_request_to_eth_client(
            node_url,
            "eth_estimateGas",
            [{"from": signer.address, "to": to, "data": call_data,
              "value": hex(value)}],
        ),
        send_rpc_request_to_eth_client(node_url, "eth_gasPrice"),
        send_rpc_request_to_eth_client(node_url, "eth_maxPriorityFeePerGas"),
        send_rpc_request_to_eth_client(
            node_url,
            "eth_getTransactionCount",
            [signer.address, "latest"],
        ),
    )
    for task_result in tasks:
        if "result" not in task_result:
            raise RpcError(
                "Failed to prepare transaction: "
                + str(task_result.get("error")))

    gas_estimation = math.ceil(int(tasks[0]["result"], 16) * 1.2)  # 20% buffer
    max_fee_per_gas = int(tasks[1]["result"], 16)
    max_priority_fee_per_gas = int(tasks[2]["result"], 16)
    # max priority fee per gas can't be higher than max fee per gas
    if max_priority_fee_per_gas > max_fee_per_gas:
        max_priority_fee_per_gas = max_fee_per_gas

    txnDict = {
        "chainId": chain_id,
        "from": signer.address,
        "to": to,
        "nonce": int(tasks[3]["result"], 16),
        "gas": gas_estimation,
        "value": value,
        "data": call_data,
        "maxFeePerGas": max_fee_per_gas,
        "maxPriorityFeePerGas": max_priority_fee_per_gas,
    }
    signed_txn = signer.sign_transaction(txnDict)
    raw_transaction = "0x" + signed_txn.raw_transaction.hex()

    result = await send_rpc_request_to_eth_client_no_retry(
        node_url, "eth_sendRawTransaction", [raw_transaction]
    )
    if "error" in result or "result" not in result:
        logging.error(f"Failed to send transaction. {str(result.get('error'))}")
        raise RpcError(
            f"Failed to send transaction: {str(result.get('error'))}")
    return TransactionHash(result["result"])
