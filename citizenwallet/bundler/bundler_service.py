import logging
from typing import Any, cast

from eth_abi import decode
from eth_account.signers.local import LocalAccount
from eth_utils import keccak

from citizenwallet.calldata.calldata import (account_call_data,
                                             approve_call_data,
                                             burn_from_call_data,
                                             burn_profile_call_data,
                                             grant_role_call_data,
                                             mint_call_data,
                                             profile_call_data,
                                             revoke_role_call_data,
                                             transfer_call_data,
                                             wrap_call_data)
from citizenwallet.config.community_config import (AccountConfig,
                                                   CommunityConfig)
from citizenwallet.exceptions import (MissingRoleError, RpcError,
                                      SponsorshipError, SubmissionError,
                                      TransactionFailedError)
from citizenwallet.metrics.metrics import (
    REQUEST_TIME_await_success, REQUEST_TIME_eth_sendUserOperation,
    REQUEST_TIME_getUserOpHash, REQUEST_TIME_pm_ooSponsorUserOperation)
from citizenwallet.typing import Address, TransactionHash, UserOperationHash
from citizenwallet.user_operation.user_operation import (
    USER_OPERATION_TUPLE_TYPE, UserOperation)
from citizenwallet.utils.crypto import MINTER_ROLE, has_role, sign_hash
from citizenwallet.utils.encode import encode_function_call, hex_to_bytes
from citizenwallet.utils.eth_client_utils import (
    eth_call, get_http_status, send_rpc_request_to_eth_client_no_retry,
    wait_for_transaction_receipt)
from citizenwallet.utils.units import parse_units

ERC20_TRANSFER_EVENT_TOPIC = "0x" + keccak(
    text="Transfer(address,address,uint256)").hex()
ZERO_ADDRESS = Address("0x" + "00" * 20)

UserOperationData = dict[str, str]


class BundlerService:
    """
    Builds, sponsors, signs and submits user operations for the accounts of
    one community. Steps run strictly in order, each one consuming the
    output of the previous one.
    """

    config: CommunityConfig
    account_config: AccountConfig
    rpc_url: str
    node_url: str

    def __init__(
        self,
        config: CommunityConfig,
        account_factory_address: Address | None = None,
    ):
        self.config = config
        self.account_config = config.get_account_config(
            account_factory_address)
        self.rpc_url = config.get_rpc_url(account_factory_address)
        self.node_url = config.primary_network.node_url

    async def sender_account_exists(self, sender: Address) -> bool:
        url = f"{self.node_url}/v1/accounts/{sender}/exists"
        status = await get_http_status(url)
        return 200 <= status < 300

    def generate_user_operation(
        self,
        owner: Address,
        sender: Address,
        sender_account_exists: bool,
        call_data: bytes,
    ) -> UserOperation:
        user_operation = UserOperation(sender_address=sender)
        if not sender_account_exists:
            account_creation_code = encode_function_call(
                "createAccount", ["address", "uint256"], [owner, 0]
            )
            user_operation.init_code = (
                hex_to_bytes(self.account_config.account_factory_address) +
                account_creation_code
            )
        user_operation.call_data = call_data
        return user_operation

    async def prepare_user_operation(
        self, owner: Address, sender: Address, call_data: bytes
    ) -> UserOperation:
        exists = await self.sender_account_exists(sender)
        return self.generate_user_operation(owner, sender, exists, call_data)

    @REQUEST_TIME_pm_ooSponsorUserOperation.time()
    async def sponsor_user_operation(
        self, user_operation: UserOperation
    ) -> UserOperation:
        params = [
            user_operation.get_user_operation_json(),
            self.account_config.entrypoint_address,
            {"type": self.account_config.paymaster_type},
            1,
        ]
        try:
            response: Any = await send_rpc_request_to_eth_client_no_retry(
                self.rpc_url, "pm_ooSponsorUserOperation", params
            )
        except RpcError as excp:
            logging.error(f"Sponsorship request failed. {excp.message}")
            raise SponsorshipError(excp.message)

        if "error" in response:
            logging.error(
                f"Sponsorship rejected. {str(response['error'])}")
            raise SponsorshipError(
                f"Sponsorship rejected - {str(response['error'])}")
        result = response.get("result")
        if not isinstance(result, list) or len(result) == 0:
            logging.error("Invalid sponsorship response")
            raise SponsorshipError("Invalid response")
        return UserOperation.from_json(result[0])

    @REQUEST_TIME_getUserOpHash.time()
    async def sign_user_operation(
        self, signer: LocalAccount, user_operation: UserOperation
    ) -> bytes:
        call_data = encode_function_call(
            "getUserOpHash",
            [USER_OPERATION_TUPLE_TYPE],
            [user_operation.to_list()],
        )
        raw_result = await eth_call(
            self.rpc_url, self.account_config.entrypoint_address, call_data
        )
        (user_operation_hash,) = decode(["bytes32"], raw_result)
        return hex_to_bytes(sign_hash(signer, user_operation_hash))

    @REQUEST_TIME_eth_sendUserOperation.time()
    async def submit_user_operation(
        self,
        user_operation: UserOperation,
        data: UserOperationData | None = None,
        extra_data: dict[str, str] | None = None,
    ) -> UserOperationHash:
        params: list[Any] = [
            user_operation.get_user_operation_json(),
            self.account_config.entrypoint_address,
        ]
        if data is not None:
            params.append(data)
        if extra_data is not None:
            params.append(extra_data)

        try:
            response: Any = await send_rpc_request_to_eth_client_no_retry(
                self.rpc_url, "eth_sendUserOperation", params
            )
        except RpcError as excp:
            logging.error(f"User operation submission failed. {excp.message}")
            raise SubmissionError(excp.message)

        if "error" in response:
            logging.error(
                f"User operation rejected. {str(response['error'])}")
            raise SubmissionError(
                f"User operation rejected - {str(response['error'])}")
        result = response.get("result")
        if not isinstance(result, str) or len(result) == 0:
            logging.error("Invalid submission response")
            raise SubmissionError("Invalid response")
        return UserOperationHash(result)

    async def try_submit_user_operation(
        self,
        user_operation: UserOperation,
        data: UserOperationData | None = None,
        extra_data: dict[str, str] | None = None,
    ) -> tuple[UserOperationHash | None, SubmissionError | None]:
        try:
            return (
                await self.submit_user_operation(
                    user_operation, data, extra_data),
                None,
            )
        except SubmissionError as excp:
            return None, excp

    async def build_signed_user_operation(
        self, signer: LocalAccount, sender: Address, call_data: bytes
    ) -> UserOperation:
        owner = Address(signer.address)
        user_operation = await self.prepare_user_operation(
            owner, sender, call_data)
        logging.info(f"Requesting sponsorship for {sender}")
        user_operation = await self.sponsor_user_operation(user_operation)
        signature = await self.sign_user_operation(signer, user_operation)
        return user_operation.with_signature(signature)

    async def _submit_with_role_check(
        self,
        user_operation: UserOperation,
        data: UserOperationData,
        extra_data: dict[str, str] | None,
        contract_address: Address,
        role: str,
        account: Address,
    ) -> UserOperationHash:
        user_operation_hash, error = await self.try_submit_user_operation(
            user_operation, data, extra_data
        )
        if error is None:
            return cast(UserOperationHash, user_operation_hash)
        try:
            authorized = await has_role(
                self.rpc_url, contract_address, role, account)
        except Exception as excp:
            # role state unknown, keep the submission error
            logging.warning(f"Role check on {contract_address} failed: {excp}")
            raise error from excp
        if not authorized:
            raise MissingRoleError(
                "MINTER_ROLE" if role == MINTER_ROLE else role,
                account,
                contract_address,
            )
        raise error

    def _description(self, description: str | None) -> dict[str, str] | None:
        if description is None:
            return None
        return {"description": description}

    def _transfer_data(
        self, token_address: Address, from_address: Address,
        to_address: Address, value: int
    ) -> UserOperationData:
        return {
            "topic": ERC20_TRANSFER_EVENT_TOPIC,
            "address": token_address,
            "from": from_address,
            "to": to_address,
            "value": str(value),
        }

    async def submit(
        self,
        signer: LocalAccount,
        sender: Address,
        contract_address: Address,
        call_data: bytes | str,
        data: UserOperationData | None = None,
        description: str | None = None,
    ) -> UserOperation:
        """Wraps raw calldata in the account envelope and submits it."""
        execute_call_data = wrap_call_data(
            self.account_config.variant, contract_address, call_data)
        user_operation = await self.build_signed_user_operation(
            signer, sender, execute_call_data)
        await self.submit_user_operation(
            user_operation, data, self._description(description))
        return user_operation

    async def call(
        self,
        signer: LocalAccount,
        contract_address: Address,
        sender: Address,
        call_data: bytes | str,
        data: UserOperationData | None = None,
        description: str | None = None,
    ) -> UserOperationHash:
        execute_call_data = wrap_call_data(
            self.account_config.variant, contract_address, call_data)
        user_operation = await self.build_signed_user_operation(
            signer, sender, execute_call_data)
        return await self.submit_user_operation(
            user_operation, data, self._description(description))

    async def send_erc20_token(
        self,
        signer: LocalAccount,
        token_address: Address,
        from_address: Address,
        to_address: Address,
        amount: str,
        description: str | None = None,
    ) -> UserOperationHash:
        value = parse_units(amount, self.config.primary_token.decimals)
        call_data = transfer_call_data(
            self.account_config.variant, token_address, to_address, value)
        user_operation = await self.build_signed_user_operation(
            signer, from_address, call_data)
        return await self.submit_user_operation(
            user_operation,
            self._transfer_data(token_address, from_address, to_address, value),
            self._description(description),
        )

    async def mint_erc20_token(
        self,
        signer: LocalAccount,
        token_address: Address,
        from_address: Address,
        to_address: Address,
        amount: str,
        description: str | None = None,
    ) -> UserOperationHash:
        value = parse_units(amount, self.config.primary_token.decimals)
        call_data = mint_call_data(
            self.account_config.variant, token_address, to_address, value)
        user_operation = await self.build_signed_user_operation(
            signer, from_address, call_data)
        return await self._submit_with_role_check(
            user_operation,
            self._transfer_data(token_address, ZERO_ADDRESS, to_address, value),
            self._description(description),
            token_address,
            MINTER_ROLE,
            from_address,
        )

    async def burn_from_erc20_token(
        self,
        signer: LocalAccount,
        token_address: Address,
        sender: Address,
        from_address: Address,
        amount: str,
        description: str | None = None,
    ) -> UserOperationHash:
        value = parse_units(amount, self.config.primary_token.decimals)
        call_data = burn_from_call_data(
            self.account_config.variant, token_address, from_address, value)
        user_operation = await self.build_signed_user_operation(
            signer, sender, call_data)
        return await self._submit_with_role_check(
            user_operation,
            self._transfer_data(
                token_address, from_address, ZERO_ADDRESS, value),
            self._description(description),
            token_address,
            MINTER_ROLE,
            sender,
        )

    async def approve_erc20_token(
        self,
        signer: LocalAccount,
        token_address: Address,
        sender: Address,
        issuer: Address,
        amount: str,
    ) -> UserOperationHash:
        value = parse_units(amount, self.config.primary_token.decimals)
        call_data = approve_call_data(
            self.account_config.variant, token_address, issuer, value)
        user_operation = await self.build_signed_user_operation(
            signer, sender, call_data)
        return await self.submit_user_operation(user_operation)

    async def set_profile(
        self,
        signer: LocalAccount,
        signer_account_address: Address,
        profile_account_address: Address,
        username: str,
        ipfs_hash: str,
    ) -> UserOperationHash:
        call_data = profile_call_data(
            self.account_config.variant,
            self.config.community.profile_address,
            profile_account_address,
            username,
            ipfs_hash,
        )
        user_operation = await self.build_signed_user_operation(
            signer, signer_account_address, call_data)
        return await self.submit_user_operation(user_operation)

    async def burn_profile(
        self,
        signer: LocalAccount,
        signer_account_address: Address,
        profile_account_address: Address,
    ) -> UserOperationHash:
        call_data = burn_profile_call_data(
            self.account_config.variant,
            self.config.community.profile_address,
            profile_account_address,
        )
        user_operation = await self.build_signed_user_operation(
            signer, signer_account_address, call_data)
        return await self.submit_user_operation(user_operation)

    async def grant_role(
        self,
        signer: LocalAccount,
        token_address: Address,
        sender: Address,
        role: str,
        account: Address,
    ) -> UserOperationHash:
        call_data = grant_role_call_data(
            self.account_config.variant, token_address, role, account)
        user_operation = await self.build_signed_user_operation(
            signer, sender, call_data)
        return await self.submit_user_operation(user_operation)

    async def revoke_role(
        self,
        signer: LocalAccount,
        token_address: Address,
        sender: Address,
        role: str,
        account: Address,
    ) -> UserOperationHash:
        call_data = revoke_role_call_data(
            self.account_config.variant, token_address, role, account)
        user_operation = await self.build_signed_user_operation(
            signer, sender, call_data)
        return await self.submit_user_operation(user_operation)

    async def call_action(
        self,
        signer: LocalAccount,
        sender: Address,
        contract_address: Address,
        action: str,
        *args,
    ) -> UserOperationHash:
        call_data = account_call_data(
            self.account_config.variant, contract_address, action, *args)
        user_operation = await self.build_signed_user_operation(
            signer, sender, call_data)
        return await self.submit_user_operation(user_operation)

    @REQUEST_TIME_await_success.time()
    async def await_success(
        self, transaction_hash: TransactionHash | str, timeout: float = 12
    ) -> dict:
        receipt = await wait_for_transaction_receipt(
            self.rpc_url, transaction_hash, timeout)
        if receipt.get("status") != "0x1":
            logging.error(f"Transaction {transaction_hash} reverted")
            raise TransactionFailedError()
        return receipt
