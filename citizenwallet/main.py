import asyncio
import logging
import sys

import uvloop

from citizenwallet.accounts.accounts import get_account_address
from citizenwallet.cards.cards import card_instance_id
from citizenwallet.config.community_config import CommunityConfig
from citizenwallet.deeplink.deeplink import generate_receive_link
from citizenwallet.deeplink.qr import parse_qr_code, parse_qr_format
from citizenwallet.exceptions import (CitizenWalletException, ConfigLookupError,
                                      RpcError)
from citizenwallet.vouchers.vouchers import parse_voucher

from .cli_manager import InitData, parse_args


def _community_config(init_data: InitData) -> CommunityConfig:
    if init_data.community_config is None:
        raise ConfigLookupError(
            f"{init_data.command} needs a community config")
    return init_data.community_config


async def execute_command(init_data: InitData) -> str:
    args = init_data.args
    if init_data.command == "send-to-link":
        alias = _community_config(init_data).community.alias
        return generate_receive_link(
            args.base_url,
            args.account,
            alias,
            args.amount,
            args.description,
            args.tip_to,
            args.tip_amount,
            args.tip_description,
        )
    if init_data.command == "card-instance-id":
        return card_instance_id(args.instance_id.strip())
    if init_data.command == "parse-qr":
        address, amount, description, calldata = parse_qr_code(args.payload)
        return "\n".join((
            f"format: {parse_qr_format(args.payload).value}",
            f"address: {address}",
            f"amount: {amount}",
            f"description: {description}",
            f"calldata: {calldata}",
        ))
    if init_data.command == "voucher-info":
        voucher, signer = parse_voucher(args.voucher_link)
        return "\n".join((
            f"name: {voucher.name}",
            f"alias: {voucher.alias}",
            f"creator: {voucher.creator}",
            f"account: {voucher.account}",
            f"signer: {signer.address}",
        ))
    if init_data.command == "account-address":
        account = await get_account_address(
            _community_config(init_data), args.owner, args.salt)
        if account is None:
            raise RpcError(f"Unable to resolve the account of {args.owner}")
        return account
    raise ValueError(f"Unknown command {init_data.command}")


async def main(cmd_args=sys.argv[1:]) -> int:
    init_data = parse_args(cmd_args)
    try:
        print(await execute_command(init_data))
    except CitizenWalletException as excp:
        logging.error(excp.message)
        return 1
    return 0


def run() -> None:
    asyncio.set_event_loop_policy(uvloop.EventLoopPolicy())
    sys.exit(asyncio.run(main()))
