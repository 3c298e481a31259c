import logging
import re
from argparse import ArgumentParser, ArgumentTypeError, Namespace
from dataclasses import dataclass

from citizenwallet.config.community_config import CommunityConfig
from citizenwallet.config.env import get_env_or_default
from citizenwallet.utils.encode import ADDRESS_PATTERN

DEFAULT_APP_BASE_URL = "https://app.citizenwallet.xyz"


def address(ep: str):
    if not isinstance(ep, str) or re.match(ADDRESS_PATTERN, ep) is None:
        raise ArgumentTypeError(f"Wrong address format : {ep}")
    return ep


@dataclass()
class InitData:
    command: str
    args: Namespace
    community_config: CommunityConfig | None


def initialize_argument_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog="citizenwallet",
        description="Citizen Wallet community account tools",
    )
    parser.add_argument(
        "--community_config",
        type=str,
        help="Path to the community json config.",
        nargs="?",
        default=get_env_or_default("CW_COMMUNITY_CONFIG", None),
    )
    parser.add_argument(
        "--verbose",
        help="show debug log",
        nargs="?",
        const=True,
        default=False,
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    send_to_link = subparsers.add_parser(
        "send-to-link", help="Generate a receive link for an account.")
    send_to_link.add_argument("--account", type=address, required=True)
    send_to_link.add_argument(
        "--base_url",
        type=str,
        default=get_env_or_default("CW_APP_BASE_URL", DEFAULT_APP_BASE_URL),
    )
    send_to_link.add_argument("--amount", type=str, default=None)
    send_to_link.add_argument("--description", type=str, default=None)
    send_to_link.add_argument("--tip_to", type=address, default=None)
    send_to_link.add_argument("--tip_amount", type=str, default=None)
    send_to_link.add_argument("--tip_description", type=str, default=None)

    card_instance_id = subparsers.add_parser(
        "card-instance-id", help="Hash a card manager instance id.")
    card_instance_id.add_argument("instance_id", type=str)

    parse_qr = subparsers.add_parser(
        "parse-qr", help="Detect and decode a QR code payload.")
    parse_qr.add_argument("payload", type=str)

    voucher_info = subparsers.add_parser(
        "voucher-info", help="Decode a voucher link.")
    voucher_info.add_argument("voucher_link", type=str)

    account_address = subparsers.add_parser(
        "account-address",
        help="Resolve the counterfactual account of an owner.")
    account_address.add_argument("owner", type=address)
    account_address.add_argument("--salt", type=int, default=0)

    return parser


def init_logging(args: Namespace):
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s.%(msecs)03d %(levelname)s %(message)s",
        datefmt="%b %d %H:%M:%S",
    )


def parse_args(cmd_args: list[str]) -> InitData:
    argument_parser = initialize_argument_parser()
    args = argument_parser.parse_args(cmd_args)
    init_logging(args)

    community_config = None
    if args.command in ("send-to-link", "account-address"):
        if not args.community_config:
            argument_parser.error(
                f"{args.command} needs --community_config "
                "or the CW_COMMUNITY_CONFIG environment variable")
        community_config = CommunityConfig.from_file(args.community_config)
    if args.command == "send-to-link" and (
        bool(args.tip_to) != bool(args.tip_amount)
    ):
        argument_parser.error(
            "--tip_to and --tip_amount must be given together")

    return InitData(args.command, args, community_config)
