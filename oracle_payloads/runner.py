"""
Oracle payload commands.

Each command performs one request, prints the ABI-encoded payload as hex
on stdout and exits. Logs and errors go to stderr.

Usage:
    pyth <price-feed-id>
    redstone <data-service-id> <data-feed-id> [<data-feed-id> ...]
    feed-key <identifier>

Exit codes: 0 success, 1 usage or configuration error, 2 upstream
failure, 3 inconsistent Redstone timestamps.
"""

import asyncio
import argparse
import logging
import sys
from typing import List, Optional

from .config import PayloadConfig, load_config
from .errors import PayloadError, UsageError
from .feeds.pyth import PythPayloadFetcher
from .feeds.redstone import RedstonePayloadFetcher, RedstoneGatewaySource
from .keys import convert_string_to_bytes32
from .models.payload import AggregatePayload

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s | %(levelname)s | %(name)s | %(message)s'


class _ArgumentParser(argparse.ArgumentParser):
    """Argument parser that reports bad arguments as UsageError"""

    def error(self, message):
        raise UsageError(message)


def _setup_logging(config: PayloadConfig):
    logging.basicConfig(
        level=config.log_level.upper(),
        format=LOG_FORMAT,
        datefmt='%H:%M:%S',
        filename=config.log_file or None,
    )


def _common_options(parser: argparse.ArgumentParser):
    parser.add_argument(
        "--config", "-c",
        default=None,
        help="Config file (YAML or JSON)"
    )
    parser.add_argument(
        "--log-level", "-l",
        default=None,
        help="Log level override (default: from config, INFO)"
    )


def _load(args: argparse.Namespace) -> PayloadConfig:
    config = load_config(args.config)
    if args.log_level:
        config.log_level = args.log_level
        errors = config.validate()
        if errors:
            raise ValueError(errors[0])
    _setup_logging(config)
    return config


def _run(parser: _ArgumentParser, argv: Optional[List[str]], command) -> int:
    """Parse arguments, run command and map failures to exit codes"""
    try:
        args = parser.parse_args(argv)
    except UsageError as e:
        parser.print_usage(sys.stderr)
        print(f"{parser.prog}: error: {e}", file=sys.stderr)
        return e.exit_code

    try:
        config = _load(args)
    except ValueError as e:
        print(f"{parser.prog}: configuration error: {e}", file=sys.stderr)
        return 1

    loop = asyncio.new_event_loop()
    try:
        result = loop.run_until_complete(command(args, config))
    except PayloadError as e:
        logger.debug("Command failed", exc_info=True)
        print(f"{type(e).__name__}: {e}", file=sys.stderr)
        return e.exit_code
    finally:
        loop.close()

    print(result)
    return 0


# ============ Pyth ============

async def fetch_pyth_payload(
    price_feed_id: str,
    config: Optional[PayloadConfig] = None,
) -> AggregatePayload:
    """Fetch a single Pyth payload"""
    config = config or PayloadConfig()
    feed = PythPayloadFetcher(base_url=config.pyth.hermes_url)
    try:
        return await feed.get_payload(price_feed_id)
    finally:
        await feed.close()


async def _pyth_command(args: argparse.Namespace, config: PayloadConfig) -> str:
    payload = await fetch_pyth_payload(args.price_feed_id, config)
    return payload.to_hex()


def pyth_main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the pyth command"""
    parser = _ArgumentParser(
        prog="pyth",
        description="Print an ABI-encoded Pyth price update payload",
    )
    parser.add_argument("price_feed_id", help="Pyth price feed id (hex)")
    _common_options(parser)

    return _run(parser, argv, _pyth_command)


# ============ Redstone ============

async def fetch_redstone_payload(
    data_service_id: str,
    data_feeds: List[str],
    config: Optional[PayloadConfig] = None,
) -> AggregatePayload:
    """Fetch a single Redstone payload"""
    config = config or PayloadConfig()
    fetcher = RedstonePayloadFetcher(
        source=RedstoneGatewaySource(
            gateway_urls=config.redstone.gateway_urls,
            unsigned_metadata=config.redstone.unsigned_metadata,
        ),
        unique_signers_count=config.redstone.unique_signers_count,
    )
    try:
        return await fetcher.get_payload(data_service_id, data_feeds)
    finally:
        await fetcher.close()


async def _redstone_command(args: argparse.Namespace, config: PayloadConfig) -> str:
    if args.unique_signers is not None:
        config.redstone.unique_signers_count = args.unique_signers
    payload = await fetch_redstone_payload(args.data_service_id, args.data_feeds, config)
    return payload.to_hex()


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return number


def redstone_main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the redstone command"""
    parser = _ArgumentParser(
        prog="redstone",
        description="Print an ABI-encoded Redstone payload",
    )
    parser.add_argument("data_service_id", help="Data service id, e.g. redstone-main-demo")
    parser.add_argument("data_feeds", nargs="+", metavar="data_feed_id", help="Data feed id, e.g. ETH")
    parser.add_argument(
        "--unique-signers", "-u",
        type=_positive_int,
        default=None,
        help="Distinct signers required per feed (default: from config, 1)"
    )
    _common_options(parser)

    return _run(parser, argv, _redstone_command)


# ============ Feed keys ============

async def _feed_key_command(args: argparse.Namespace, config: PayloadConfig) -> str:
    return "0x" + convert_string_to_bytes32(args.identifier).hex()


def feed_key_main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the feed-key command"""
    parser = _ArgumentParser(
        prog="feed-key",
        description="Print the bytes32 key of a feed identifier",
    )
    parser.add_argument("identifier", help="Feed identifier, e.g. ETH")
    _common_options(parser)

    return _run(parser, argv, _feed_key_command)
