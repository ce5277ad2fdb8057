"""Account-batch orchestration: swap, checkpoint, bridge."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Protocol

from eth_account import Account
from eth_account.signers.local import LocalAccount

from .checkpoint import CheckpointStore
from .config import AppConfig, BridgeRoute
from .convert import derive_bech32_address
from .evm.bridge import BridgeTransferExecutor
from .evm.swap import SwapExecutor
from .evm.transactions import NonceTracker
from .exceptions import ContractExecutionError, ValidationError
from .types import AccountPhase, BatchReport

logger = logging.getLogger(__name__)


class BatchGateway(Protocol):
    def get_nonce(self, account: str) -> int: ...

    def get_balance(self, token: str, account: str) -> int: ...


@dataclass(frozen=True)
class BatchAccount:
    index: int
    private_key: str
    signer: LocalAccount

    @property
    def address(self) -> str:
        return self.signer.address

    @property
    def label(self) -> str:
        return f"Account {self.index}: {self.address}"


def load_accounts(private_keys: Sequence[str]) -> list[BatchAccount]:
    accounts = []
    for index, key in enumerate(private_keys, start=1):
        try:
            signer = Account.from_key(key)
        except (ValueError, TypeError) as exc:
            raise ValidationError(
                f"Private key #{index} is invalid",
                field="private_key",
                details={"error": str(exc)},
            ) from exc
        accounts.append(BatchAccount(index=index, private_key=key, signer=signer))
    return accounts


class BatchOrchestrator:
    """Run the swap and transfer phases over a list of accounts.

    Accounts are processed one at a time. The swap phase runs for accounts
    without a checkpoint entry when no checkpoint exists yet or when the
    previous swap phase was interrupted; otherwise the run resumes directly
    with transfers. Recoverable transfer failures skip the account and keep
    its checkpoint entry; every other error propagates.
    """

    def __init__(
        self,
        config: AppConfig,
        gateway: BatchGateway,
        swap_executor: SwapExecutor,
        bridge_executor: BridgeTransferExecutor,
        checkpoint: CheckpointStore,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = config
        self._gateway = gateway
        self._swapper = swap_executor
        self._bridger = bridge_executor
        self._checkpoint = checkpoint
        self._sleep = sleep

    def run(self, private_keys: Sequence[str]) -> BatchReport:
        accounts = load_accounts(private_keys)
        nonces = NonceTracker(self._gateway)
        report = BatchReport()

        resuming = self._checkpoint.exists()
        interrupted_swap = self._checkpoint.swap_phase_open()
        state = self._checkpoint.load()

        if resuming and not interrupted_swap:
            logger.info("Skipping swap steps as %s already exists.", self._checkpoint.path)
        else:
            pending = [account for account in accounts if account.address not in state]
            if interrupted_swap:
                logger.info(
                    "Resuming interrupted swap phase for %d of %d account(s)",
                    len(pending),
                    len(accounts),
                )
            self._run_swap_phase(pending, nonces, report)
            state = self._checkpoint.load()

        self._run_transfer_phase(accounts, state, nonces, report)

        if self._checkpoint.exists() and self._checkpoint.is_empty():
            self._checkpoint.delete()
            report.checkpoint_deleted = True
        elif report.skipped:
            logger.warning(
                "%d account(s) skipped; balances kept in %s for the next run",
                len(report.skipped),
                self._checkpoint.path,
            )
        return report

    def run_live(self, private_keys: Sequence[str]) -> BatchReport:
        """Bridge every account's current token balances without swapping.

        Balances are read from the chain right before each account's
        transfers and no checkpoint is read or written.
        """
        accounts = load_accounts(private_keys)
        nonces = NonceTracker(self._gateway)
        report = BatchReport()

        for position, account in enumerate(accounts):
            if position:
                self._pause()
            report.mark(account.address, AccountPhase.PENDING_TRANSFER)
            balances = self._read_balances(account)
            try:
                self._transfer_account(account, balances, nonces, record=False)
            except ContractExecutionError as exc:
                if not exc.recoverable:
                    raise
                logger.error("Skipping account %s due to error: %s", account.address, exc)
                report.mark(account.address, AccountPhase.SKIPPED)
                continue
            report.mark(account.address, AccountPhase.TRANSFERRED)
        return report

    # ------------------------------------------------------------------
    # Swap phase
    # ------------------------------------------------------------------
    def _run_swap_phase(
        self, accounts: Sequence[BatchAccount], nonces: NonceTracker, report: BatchReport
    ) -> None:
        if not accounts:
            self._checkpoint.end_swap_phase()
            return

        self._checkpoint.begin_swap_phase()
        for position, account in enumerate(accounts):
            if position:
                self._pause()
            report.mark(account.address, AccountPhase.PENDING_SWAP)
            self._swap_account(account, nonces)
            report.mark(account.address, AccountPhase.SWAPPED)
        self._checkpoint.end_swap_phase()

    def _swap_account(self, account: BatchAccount, nonces: NonceTracker) -> None:
        swap = self._config.swap
        if swap is None:
            raise ValidationError("Swap settings are not configured", field="swap")
        for pair in swap.pairs:
            logger.info("Swapping ETH via %s on %s", pair.name, account.label)
            self._swapper.swap(
                account.signer,
                swap.max_spend,
                pair.path,
                swap.router,
                swap.adapters,
                swap.recipients,
                nonces.current(account.address),
            )
            nonces.advance(account.address)

        balances = self._read_balances(account)
        self._checkpoint.record_account(account.address, balances)
        logger.info("Recorded balances for %s: %s", account.label, balances)

    def _read_balances(self, account: BatchAccount) -> dict[str, int]:
        return {
            route.symbol: self._gateway.get_balance(route.token, account.address)
            for route in self._config.bridge.routes
        }

    # ------------------------------------------------------------------
    # Transfer phase
    # ------------------------------------------------------------------
    def _run_transfer_phase(
        self,
        accounts: Sequence[BatchAccount],
        state: Mapping[str, Mapping[str, int]],
        nonces: NonceTracker,
        report: BatchReport,
    ) -> None:
        for position, account in enumerate(accounts):
            balances = state.get(account.address)
            if balances is None:
                logger.debug("No pending balances for %s", account.label)
                continue

            if position:
                self._pause()
            report.mark(account.address, AccountPhase.PENDING_TRANSFER)
            try:
                self._transfer_account(account, dict(balances), nonces)
            except ContractExecutionError as exc:
                if not exc.recoverable:
                    raise
                logger.error("Skipping account %s due to error: %s", account.address, exc)
                report.mark(account.address, AccountPhase.SKIPPED)
                continue

            self._checkpoint.remove_account(account.address)
            report.mark(account.address, AccountPhase.TRANSFERRED)

    def _transfer_account(
        self,
        account: BatchAccount,
        balances: dict[str, int],
        nonces: NonceTracker,
        *,
        record: bool = True,
    ) -> None:
        bridge = self._config.bridge
        recipient = self._recipient_for(account)

        for route in bridge.routes:
            amount = balances.get(route.symbol, 0)
            if amount <= 0:
                logger.info("Skipping %s for %s (zero balance)", route.symbol, account.label)
                continue

            if route.approve:
                self._approve(account, route, amount, nonces)

            logger.info("Transferring %s to %s for %s", route.symbol, recipient, account.label)
            self._bridger.transfer(
                account.signer,
                route.bridge,
                bridge.destination_domain,
                recipient,
                amount,
                nonces.current(account.address),
                token=route.token,
            )
            nonces.advance(account.address)
            if not record:
                continue

            # sent amounts are zeroed so a resumed run only retries what is left
            balances[route.symbol] = 0
            self._checkpoint.record_account(account.address, balances)

    def _approve(
        self, account: BatchAccount, route: BridgeRoute, amount: int, nonces: NonceTracker
    ) -> None:
        logger.info("Approving %s for %s on %s", route.symbol, route.bridge, account.label)
        self._bridger.approve(
            account.signer, route.token, route.bridge, amount, nonces.current(account.address)
        )
        nonces.advance(account.address)

    def _recipient_for(self, account: BatchAccount) -> str:
        prefix = self._config.bridge.recipient_prefix
        if prefix:
            return derive_bech32_address(account.private_key, prefix)
        return account.address

    def _pause(self) -> None:
        if self._config.account_delay > 0:
            self._sleep(self._config.account_delay)
