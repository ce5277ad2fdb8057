"""Configuration containers and environment loading for nexus-bridger."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv
from web3 import Web3
from web3.types import ChecksumAddress

from .exceptions import ConfigMissingError, ValidationError
from .utils import parse_units

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_RECEIPT_TIMEOUT = 120.0
DEFAULT_RANK_INTERVAL = 60.0
DEFAULT_RANK_SAMPLE_COUNT = 5
DEFAULT_RANK_TIMEOUT = 0.5
DEFAULT_LATENCY_WEIGHT = 0.3
DEFAULT_STABILITY_WEIGHT = 0.7

DEFAULT_MAX_PAY_ETH = "0.000069420"
DEFAULT_LOCAL_GAS_FEE = "0.0007"
DEFAULT_INTERCHAIN_GAS_FEE = "0.0001"
DEFAULT_SWAP_PAIRS = "TIA_PAIR,ECLIP_PAIR"
DEFAULT_BRIDGE_TOKENS = "TIA_ARB,ECLIP_ARB"
DEFAULT_RECIPIENT_PREFIX = "neutron"
DEFAULT_SOURCE_EXPLORER = "https://arbiscan.io/tx/"
DEFAULT_DEST_EXPLORER = "https://www.mintscan.io/neutron/address/"
DEFAULT_PRIVATE_KEYS_FILE = "data/private_keys.txt"
DEFAULT_CHECKPOINT_FILE = "data/coins.json"

ZAP_API_PROD = "https://api.odos.xyz/sor"
DEFAULT_ZAP_RPC = "https://bsc-dataseed.binance.org"
DEFAULT_ZAP_EXPLORER = "https://bscscan.com/tx/"
DEFAULT_ZAP_CHAIN_ID = 56
DEFAULT_MAX_PAY_BNB = "0.000069420"
DEFAULT_ZAP_SLIPPAGE_PERCENT = 0.3
DEFAULT_ZAP_GAS_MULTIPLIER = 1.5
DEFAULT_ZAP_OUTPUT_TOKENS = (
    "0x8AC76a51cc950d9822D68b83fE1Ad97B32Cd580d",  # USDC
    "0x2170Ed0880ac9A755fd29B2688956BD959F933F8",  # ETH
    "0x7130d2A12B9BCbFAe4f2634d864A1Ee1Ce3Ead9c",  # BTC
    "0x55d398326f99059fF775485246999027B3197955",  # USDT
    "0x37a56cdcd83dce2868f721de58cb3830c44c6303",  # ZBC
)


@dataclass(frozen=True)
class RankConfig:
    """Endpoint ranking settings for the fallback transport."""

    interval: float = DEFAULT_RANK_INTERVAL
    sample_count: int = DEFAULT_RANK_SAMPLE_COUNT
    timeout: float = DEFAULT_RANK_TIMEOUT
    latency_weight: float = DEFAULT_LATENCY_WEIGHT
    stability_weight: float = DEFAULT_STABILITY_WEIGHT


@dataclass(frozen=True)
class ChainConfig:
    name: str
    rpc_urls: tuple[str, ...]
    explorer_tx_url: str = ""
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    wait_for_receipt: bool = True
    receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT
    rank: RankConfig = RankConfig()


@dataclass(frozen=True)
class FixedFee:
    """Attach a configured native amount to every transfer."""

    amount: int


@dataclass(frozen=True)
class QuotedFee:
    """Ask the bridge contract's ``quoteGasPayment`` for the fee."""

    buffer_bps: int = 0


FeeStrategy = FixedFee | QuotedFee


@dataclass(frozen=True)
class SwapPair:
    name: str
    path: tuple[ChecksumAddress, ...]


@dataclass(frozen=True)
class SwapConfig:
    router: ChecksumAddress
    adapters: tuple[ChecksumAddress, ...]
    recipients: tuple[ChecksumAddress, ...]
    pairs: tuple[SwapPair, ...]
    max_spend: int


@dataclass(frozen=True)
class BridgeRoute:
    """A bridge-eligible token and the contract that moves it."""

    symbol: str
    token: ChecksumAddress
    bridge: ChecksumAddress
    approve: bool = False


@dataclass(frozen=True)
class BridgeConfig:
    routes: tuple[BridgeRoute, ...]
    destination_domain: int
    fee: FeeStrategy
    recipient_prefix: str | None = DEFAULT_RECIPIENT_PREFIX
    destination_explorer_url: str = DEFAULT_DEST_EXPLORER

    @property
    def symbols(self) -> tuple[str, ...]:
        return tuple(route.symbol for route in self.routes)


@dataclass(frozen=True)
class AppConfig:
    """Aggregated configuration for a swap-and-bridge batch run."""

    chain: ChainConfig
    swap: SwapConfig | None
    bridge: BridgeConfig
    private_keys_file: Path = Path(DEFAULT_PRIVATE_KEYS_FILE)
    checkpoint_file: Path = Path(DEFAULT_CHECKPOINT_FILE)
    account_delay: float = 0.0


@dataclass(frozen=True)
class ZapConfig:
    """Configuration for the aggregator zap flow."""

    chain: ChainConfig
    chain_id: int
    max_spend: int
    output_tokens: tuple[str, ...] = DEFAULT_ZAP_OUTPUT_TOKENS
    api_url: str = ZAP_API_PROD
    slippage_percent: float = DEFAULT_ZAP_SLIPPAGE_PERCENT
    gas_multiplier: float = DEFAULT_ZAP_GAS_MULTIPLIER
    referral_code: int = 0
    private_keys_file: Path = Path(DEFAULT_PRIVATE_KEYS_FILE)
    account_delay: float = 0.0


class _EnvReader:
    def __init__(self, environ: Mapping[str, str]) -> None:
        self._environ = environ

    def get(self, name: str, default: str = "") -> str:
        value = self._environ.get(name)
        if value is None or not value.strip():
            return default
        return value.strip()

    def require(self, name: str) -> str:
        value = self.get(name)
        if not value:
            raise ConfigMissingError(name)
        return value

    def list(self, name: str, default: str = "", *, required: bool = False) -> tuple[str, ...]:
        raw = self.require(name) if required else self.get(name, default)
        items = tuple(item.strip() for item in raw.split(",") if item.strip())
        if required and not items:
            raise ConfigMissingError(name)
        return items

    def address(self, name: str, value: str | None = None) -> ChecksumAddress:
        raw = value if value is not None else self.require(name)
        if not Web3.is_address(raw):
            raise ValidationError(f"{name} is not a valid address", field=name, value=raw)
        return Web3.to_checksum_address(raw)

    def addresses(self, name: str, *, required: bool = True) -> tuple[ChecksumAddress, ...]:
        return tuple(self.address(name, item) for item in self.list(name, required=required))

    def flag(self, name: str, default: bool) -> bool:
        raw = self.get(name)
        if not raw:
            return default
        return raw.lower() not in ("0", "false", "no", "off")

    def number(self, name: str, default: float) -> float:
        raw = self.get(name)
        if not raw:
            return default
        try:
            return float(raw)
        except ValueError as exc:
            raise ValidationError(f"{name} must be numeric", field=name, value=raw) from exc

    def integer(self, name: str, default: int | None = None) -> int:
        raw = self.require(name) if default is None else self.get(name, str(default))
        try:
            return int(raw, 10)
        except ValueError as exc:
            raise ValidationError(f"{name} must be an integer", field=name, value=raw) from exc

    def wei(self, name: str, default: str) -> int:
        try:
            return parse_units(self.get(name, default))
        except ValidationError as exc:
            raise ValidationError(
                f"{name} must be an ether amount", field=name, value=self.get(name, default)
            ) from exc


def _environment(environ: Mapping[str, str] | None, env_file: str | Path | None) -> _EnvReader:
    if environ is None:
        load_dotenv(env_file)
        environ = os.environ
    return _EnvReader(environ)


def _rank_config(env: _EnvReader) -> RankConfig:
    rank = RankConfig(
        interval=env.number("RPC_RANK_INTERVAL", DEFAULT_RANK_INTERVAL),
        sample_count=env.integer("RPC_RANK_SAMPLE_COUNT", DEFAULT_RANK_SAMPLE_COUNT),
        timeout=env.number("RPC_RANK_TIMEOUT", DEFAULT_RANK_TIMEOUT),
        latency_weight=env.number("RPC_RANK_LATENCY_WEIGHT", DEFAULT_LATENCY_WEIGHT),
        stability_weight=env.number("RPC_RANK_STABILITY_WEIGHT", DEFAULT_STABILITY_WEIGHT),
    )
    if rank.sample_count < 1:
        raise ValidationError(
            "RPC_RANK_SAMPLE_COUNT must be positive", field="sample_count", value=rank.sample_count
        )
    if rank.timeout <= 0:
        raise ValidationError("RPC_RANK_TIMEOUT must be positive", field="timeout", value=rank.timeout)
    return rank


def _chain_config(
    env: _EnvReader,
    name: str,
    rpc_var: str,
    explorer_var: str,
    *,
    default_rpc: str = "",
    default_explorer: str = "",
) -> ChainConfig:
    rpc_urls = env.list(rpc_var, default_rpc, required=not default_rpc)
    return ChainConfig(
        name=name,
        rpc_urls=rpc_urls,
        explorer_tx_url=env.get(explorer_var, default_explorer),
        request_timeout=env.number("REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
        wait_for_receipt=env.flag("WAIT_FOR_RECEIPT", True),
        receipt_timeout=env.number("RECEIPT_TIMEOUT", DEFAULT_RECEIPT_TIMEOUT),
        rank=_rank_config(env),
    )


def _swap_config(env: _EnvReader) -> SwapConfig:
    router = env.address("CAMELOT_ROUTER")
    adapters = env.addresses("CAMELOT_ADAPTER")
    recipients = env.addresses("CAMELOT_RECIPIENT")

    pairs = []
    for pair_name in env.list("SWAP_PAIRS", DEFAULT_SWAP_PAIRS):
        path = env.addresses(pair_name)
        if len(path) < 2:
            raise ValidationError(
                f"{pair_name} must list at least two tokens", field=pair_name, value=path
            )
        pairs.append(SwapPair(name=pair_name, path=path))

    max_spend = env.wei("MAX_PAY_ETH", DEFAULT_MAX_PAY_ETH)
    if max_spend < 2:
        raise ValidationError("MAX_PAY_ETH is too small", field="MAX_PAY_ETH", value=max_spend)

    return SwapConfig(
        router=router,
        adapters=adapters,
        recipients=recipients,
        pairs=tuple(pairs),
        max_spend=max_spend,
    )


def _fee_strategy(env: _EnvReader) -> FeeStrategy:
    mode = env.get("GAS_FEE_MODE", "fixed").lower()
    if mode == "fixed":
        amount = env.wei("LOCAL_GAS_FEE", DEFAULT_LOCAL_GAS_FEE) + env.wei(
            "INTERCHAIN_GAS_FEE", DEFAULT_INTERCHAIN_GAS_FEE
        )
        return FixedFee(amount=amount)
    if mode == "quoted":
        return QuotedFee(buffer_bps=env.integer("QUOTED_FEE_BUFFER_BPS", 0))
    raise ValidationError(
        "GAS_FEE_MODE must be 'fixed' or 'quoted'", field="GAS_FEE_MODE", value=mode
    )


def _bridge_config(env: _EnvReader) -> BridgeConfig:
    destination = env.integer("DESTINATION_DOMAIN")
    if destination <= 0:
        raise ConfigMissingError("DESTINATION_DOMAIN")

    routes = []
    for symbol in env.list("BRIDGE_TOKENS", DEFAULT_BRIDGE_TOKENS):
        token = env.address(symbol)
        bridge_raw = env.get(f"{symbol}_BRIDGE")
        bridge = env.address(f"{symbol}_BRIDGE", bridge_raw) if bridge_raw else token
        routes.append(
            BridgeRoute(
                symbol=symbol,
                token=token,
                bridge=bridge,
                approve=env.flag(f"{symbol}_APPROVE", False),
            )
        )

    prefix = env.get("RECIPIENT_PREFIX", DEFAULT_RECIPIENT_PREFIX)
    if prefix.lower() in ("none", "evm"):
        prefix = ""

    return BridgeConfig(
        routes=tuple(routes),
        destination_domain=destination,
        fee=_fee_strategy(env),
        recipient_prefix=prefix or None,
        destination_explorer_url=env.get("DEST_EXP", DEFAULT_DEST_EXPLORER),
    )


def load_config(
    environ: Mapping[str, str] | None = None,
    *,
    env_file: str | Path | None = None,
    with_swap: bool = True,
) -> AppConfig:
    """Build the batch configuration from the environment.

    When ``environ`` is omitted the ``.env`` file is loaded first. All
    validation happens here so that a bad setting fails before any RPC call.
    With ``with_swap=False`` the router settings are neither read nor
    required and ``AppConfig.swap`` is ``None``.
    """
    env = _environment(environ, env_file)

    config = AppConfig(
        chain=_chain_config(
            env, "arbitrum", "ARB_RPC", "ARB_EXP", default_explorer=DEFAULT_SOURCE_EXPLORER
        ),
        swap=_swap_config(env) if with_swap else None,
        bridge=_bridge_config(env),
        private_keys_file=Path(env.get("PRIVATE_KEYS_FILE", DEFAULT_PRIVATE_KEYS_FILE)),
        checkpoint_file=Path(env.get("CHECKPOINT_FILE", DEFAULT_CHECKPOINT_FILE)),
        account_delay=env.number("ACCOUNT_DELAY_SECONDS", 0.0),
    )
    logger.debug(
        "Loaded config: %d RPC url(s), %d swap pair(s), %d bridge route(s)",
        len(config.chain.rpc_urls),
        len(config.swap.pairs) if config.swap else 0,
        len(config.bridge.routes),
    )
    return config


def load_zap_config(
    environ: Mapping[str, str] | None = None, *, env_file: str | Path | None = None
) -> ZapConfig:
    """Build the aggregator zap configuration from the environment."""
    env = _environment(environ, env_file)

    max_spend = env.wei("MAX_PAY_BNB", DEFAULT_MAX_PAY_BNB)
    if max_spend < 2:
        raise ValidationError("MAX_PAY_BNB is too small", field="MAX_PAY_BNB", value=max_spend)

    output_tokens = tuple(
        env.address("ZAP_OUTPUT_TOKENS", item)
        for item in env.list("ZAP_OUTPUT_TOKENS", ",".join(DEFAULT_ZAP_OUTPUT_TOKENS))
    )
    if not output_tokens:
        raise ConfigMissingError("ZAP_OUTPUT_TOKENS")

    return ZapConfig(
        chain=_chain_config(
            env,
            "bsc",
            "ZAP_RPC",
            "ZAP_EXP",
            default_rpc=DEFAULT_ZAP_RPC,
            default_explorer=DEFAULT_ZAP_EXPLORER,
        ),
        chain_id=env.integer("ZAP_CHAIN_ID", DEFAULT_ZAP_CHAIN_ID),
        max_spend=max_spend,
        output_tokens=output_tokens,
        api_url=env.get("ZAP_API_URL", ZAP_API_PROD).rstrip("/"),
        slippage_percent=env.number("ZAP_SLIPPAGE_PERCENT", DEFAULT_ZAP_SLIPPAGE_PERCENT),
        gas_multiplier=env.number("ZAP_GAS_MULTIPLIER", DEFAULT_ZAP_GAS_MULTIPLIER),
        referral_code=env.integer("ZAP_REFERRAL_CODE", 0),
        private_keys_file=Path(env.get("PRIVATE_KEYS_FILE", DEFAULT_PRIVATE_KEYS_FILE)),
        account_delay=env.number("ACCOUNT_DELAY_SECONDS", 0.0),
    )
