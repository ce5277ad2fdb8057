"""Command line entry point: ``nexus-bridger run``, ``bridge`` and ``zap``."""

from __future__ import annotations

import argparse
import logging
import os
import time
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path

from dotenv import load_dotenv

from .aggregator import AggregatorClient, ZapExecutor
from .checkpoint import CheckpointStore
from .config import AppConfig, ZapConfig, load_config, load_zap_config
from .evm.bridge import BridgeTransferExecutor
from .evm.gateway import ChainGateway
from .evm.swap import SwapExecutor
from .evm.transactions import NonceTracker
from .exceptions import BridgerError
from .orchestrator import BatchOrchestrator, load_accounts
from .types import BatchReport
from .utils import load_private_keys

logger = logging.getLogger("nexus_bridger")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def build_orchestrator(config: AppConfig) -> BatchOrchestrator:
    gateway = ChainGateway(config.chain)
    return BatchOrchestrator(
        config,
        gateway,
        SwapExecutor(gateway),
        BridgeTransferExecutor(
            gateway,
            config.bridge.fee,
            destination_explorer_url=config.bridge.destination_explorer_url,
        ),
        CheckpointStore(config.checkpoint_file),
    )


def run_batch(config: AppConfig) -> BatchReport:
    private_keys = load_private_keys(config.private_keys_file)
    logger.info("Loaded %d account(s) from %s", len(private_keys), config.private_keys_file)
    report = build_orchestrator(config).run(private_keys)
    logger.info(
        "Batch finished: %d transferred, %d skipped",
        len(report.transferred),
        len(report.skipped),
    )
    return report


def run_bridge(config: AppConfig) -> BatchReport:
    private_keys = load_private_keys(config.private_keys_file)
    logger.info("Loaded %d account(s) from %s", len(private_keys), config.private_keys_file)
    report = build_orchestrator(config).run_live(private_keys)
    logger.info(
        "Bridge finished: %d transferred, %d skipped",
        len(report.transferred),
        len(report.skipped),
    )
    return report


def run_zap(config: ZapConfig) -> list[str]:
    gateway = ChainGateway(config.chain)
    client = AggregatorClient(config.api_url, request_timeout=config.chain.request_timeout)
    executor = ZapExecutor(config, client, gateway)
    nonces = NonceTracker(gateway)

    accounts = load_accounts(load_private_keys(config.private_keys_file))
    hashes = []
    for position, account in enumerate(accounts):
        if position and config.account_delay > 0:
            time.sleep(config.account_delay)
        logger.info("Zapping native balance on %s", account.label)
        hashes.append(executor.zap(account.signer, nonces.current(account.address)))
        nonces.advance(account.address)
    return hashes


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nexus-bridger",
        description="Swap and bridge tokens across a batch of accounts.",
    )
    parser.add_argument("--env-file", type=Path, default=None, help="path to a .env file")
    parser.add_argument("--keys", type=Path, default=None, help="private keys file")
    parser.add_argument(
        "--log-level",
        default=None,
        help="logging level (default: $LOGLEVEL or INFO)",
    )

    commands = parser.add_subparsers(dest="command", required=True)
    run = commands.add_parser("run", help="swap, checkpoint and bridge every account")
    run.add_argument("--checkpoint", type=Path, default=None, help="checkpoint JSON file")
    commands.add_parser("bridge", help="bridge current token balances without swapping")
    commands.add_parser("zap", help="zap native balance into target tokens via the aggregator")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = _parser().parse_args(argv)
    load_dotenv(args.env_file)
    level = args.log_level or os.getenv("LOGLEVEL", "INFO")
    logging.basicConfig(level=str(level).upper(), format=LOG_FORMAT)

    try:
        if args.command == "run":
            config = load_config(env_file=args.env_file)
            if args.keys is not None:
                config = replace(config, private_keys_file=args.keys)
            if args.checkpoint is not None:
                config = replace(config, checkpoint_file=args.checkpoint)
            run_batch(config)
        elif args.command == "bridge":
            config = load_config(env_file=args.env_file, with_swap=False)
            if args.keys is not None:
                config = replace(config, private_keys_file=args.keys)
            run_bridge(config)
        else:
            zap_config = load_zap_config(env_file=args.env_file)
            if args.keys is not None:
                zap_config = replace(zap_config, private_keys_file=args.keys)
            run_zap(zap_config)
    except BridgerError as exc:
        logger.error("An error occurred during the swaps and transfers: %s", exc)
        if exc.details:
            logger.debug("  details: %s", exc.details)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
