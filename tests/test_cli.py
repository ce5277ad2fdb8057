"""Tests for the command line entry point."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from conftest import (
    ADDRESS_1,
    ADDRESS_2,
    ECLIP_ARB,
    KEY_1,
    KEY_2,
    TIA_ARB,
    TRANSFER_REMOTE,
    FakeGateway,
    decode_call,
)
from nexus_bridger import cli
from nexus_bridger.config import AppConfig, ChainConfig, ZapConfig
from nexus_bridger.exceptions import ConfigMissingError
from nexus_bridger.types import BatchReport

ZAP_ROUTER = "0x" + "42" * 20


@pytest.fixture(autouse=True)
def dotenv_calls(monkeypatch: pytest.MonkeyPatch) -> list[Any]:
    calls: list[Any] = []
    monkeypatch.setattr(cli, "load_dotenv", calls.append)
    return calls


def test_run_applies_path_overrides(
    app_config: AppConfig, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    captured: list[AppConfig] = []
    env_files: list[Any] = []

    def fake_load_config(*, env_file: Any = None) -> AppConfig:
        env_files.append(env_file)
        return app_config

    def fake_run_batch(config: AppConfig) -> BatchReport:
        captured.append(config)
        return BatchReport()

    monkeypatch.setattr(cli, "load_config", fake_load_config)
    monkeypatch.setattr(cli, "run_batch", fake_run_batch)

    exit_code = cli.main(
        [
            "--env-file",
            str(tmp_path / ".env"),
            "--keys",
            str(tmp_path / "keys.txt"),
            "run",
            "--checkpoint",
            str(tmp_path / "state.json"),
        ]
    )

    assert exit_code == 0
    assert env_files == [tmp_path / ".env"]
    (config,) = captured
    assert config.private_keys_file == tmp_path / "keys.txt"
    assert config.checkpoint_file == tmp_path / "state.json"


def test_bridger_errors_exit_with_status_one(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    def fake_load_config(*, env_file: Any = None) -> AppConfig:
        raise ConfigMissingError("DESTINATION_DOMAIN")

    monkeypatch.setattr(cli, "load_config", fake_load_config)

    with caplog.at_level("ERROR"):
        exit_code = cli.main(["run"])

    assert exit_code == 1
    assert "DESTINATION_DOMAIN not found in environment variables" in caplog.text


def test_run_batch_reads_keys_and_runs_orchestrator(
    app_config: AppConfig, monkeypatch: pytest.MonkeyPatch
) -> None:
    app_config.private_keys_file.write_text("ab" * 32 + "\n", encoding="utf-8")
    orchestrator = MagicMock()
    orchestrator.run.return_value = BatchReport()
    monkeypatch.setattr(cli, "build_orchestrator", lambda config: orchestrator)

    report = cli.run_batch(app_config)

    orchestrator.run.assert_called_once_with(["0x" + "ab" * 32])
    assert report is orchestrator.run.return_value


def test_log_level_defaults_to_loglevel_from_env_file(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.delenv("LOGLEVEL", raising=False)
    levels: list[str] = []

    def fake_load_dotenv(path: Any) -> bool:
        monkeypatch.setenv("LOGLEVEL", "debug")
        return True

    def fake_load_config(*, env_file: Any = None) -> AppConfig:
        raise ConfigMissingError("DESTINATION_DOMAIN")

    monkeypatch.setattr(cli, "load_dotenv", fake_load_dotenv)
    monkeypatch.setattr(cli.logging, "basicConfig", lambda **kwargs: levels.append(kwargs["level"]))
    monkeypatch.setattr(cli, "load_config", fake_load_config)

    cli.main(["--env-file", str(tmp_path / ".env"), "run"])
    cli.main(["--log-level", "warning", "run"])

    assert levels == ["DEBUG", "WARNING"]


def test_env_file_is_loaded_before_dispatch(
    dotenv_calls: list[Any], monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    def fake_load_config(**kwargs: Any) -> AppConfig:
        raise ConfigMissingError("ARB_RPC")

    monkeypatch.setattr(cli, "load_config", fake_load_config)

    assert cli.main(["--env-file", str(tmp_path / ".env"), "bridge"]) == 1
    assert dotenv_calls == [tmp_path / ".env"]


def test_bridge_sends_live_balances_without_checkpoint(
    app_config: AppConfig, monkeypatch: pytest.MonkeyPatch
) -> None:
    config = replace(app_config, swap=None)
    config.private_keys_file.write_text(f"{KEY_1}\n{KEY_2}\n", encoding="utf-8")
    gateway = FakeGateway(
        nonces={ADDRESS_1: 2, ADDRESS_2: 0},
        balances={
            (TIA_ARB, ADDRESS_1): 5,
            (TIA_ARB, ADDRESS_2): 7,
            (ECLIP_ARB, ADDRESS_2): 9,
        },
    )
    loads: list[bool] = []

    def fake_load_config(*, env_file: Any = None, with_swap: bool = True) -> AppConfig:
        loads.append(with_swap)
        return config

    monkeypatch.setattr(cli, "load_config", fake_load_config)
    monkeypatch.setattr(cli, "ChainGateway", lambda chain: gateway)

    assert cli.main(["bridge"]) == 0

    assert loads == [False]
    assert gateway.quotes == []
    (first,) = gateway.sent_by(ADDRESS_1)
    assert (first["to"], first["nonce"]) == (TIA_ARB, 2)
    assert decode_call(first["data"], TRANSFER_REMOTE)[2] == 5
    second = gateway.sent_by(ADDRESS_2)
    assert [(entry["to"], entry["nonce"]) for entry in second] == [(TIA_ARB, 0), (ECLIP_ARB, 1)]
    assert [decode_call(entry["data"], TRANSFER_REMOTE)[2] for entry in second] == [7, 9]
    assert gateway.nonce_calls == [ADDRESS_1, ADDRESS_2]
    assert not config.checkpoint_file.exists()


class FakeAggregatorClient:
    instances: list[FakeAggregatorClient] = []

    def __init__(self, base_url: str, session: Any = None, *, request_timeout: float = 10.0):
        self.base_url = base_url
        self.request_timeout = request_timeout
        self.quotes: list[dict[str, Any]] = []
        self.assembled: list[tuple[str, str]] = []
        FakeAggregatorClient.instances.append(self)

    def generate_quote(self, body: dict[str, Any]) -> dict[str, Any]:
        self.quotes.append(body)
        return {"pathId": f"p-{len(self.quotes)}"}

    def assemble(self, user_address: str, path_id: str, *, simulate: bool = True) -> dict[str, Any]:
        self.assembled.append((user_address, path_id))
        transaction = {
            "gas": 100_000,
            "gasPrice": 1_000_000_000,
            "value": "5",
            "to": ZAP_ROUTER,
            "data": "0x",
        }
        return {"transaction": transaction}


def test_run_zap_sequences_nonces_per_account(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    keys_file = tmp_path / "keys.txt"
    keys_file.write_text(f"{KEY_1}\n{KEY_2}\n", encoding="utf-8")
    config = ZapConfig(
        chain=ChainConfig(name="bsc", rpc_urls=("https://bsc.example",)),
        chain_id=56,
        max_spend=1_000,
        api_url="https://api.odos.example/sor",
        private_keys_file=keys_file,
    )
    gateway = FakeGateway(nonces={ADDRESS_1: 4, ADDRESS_2: 0})
    FakeAggregatorClient.instances = []
    monkeypatch.setattr(cli, "ChainGateway", lambda chain: gateway)
    monkeypatch.setattr(cli, "AggregatorClient", FakeAggregatorClient)

    hashes = cli.run_zap(config)

    (client,) = FakeAggregatorClient.instances
    assert client.base_url == "https://api.odos.example/sor"
    assert [address for address, _ in client.assembled] == [ADDRESS_1, ADDRESS_2]
    assert len(hashes) == 2
    assert [entry["nonce"] for entry in gateway.sent_by(ADDRESS_1)] == [4]
    assert [entry["nonce"] for entry in gateway.sent_by(ADDRESS_2)] == [0]
    assert all(entry["to"] == ZAP_ROUTER for entry in gateway.submissions)
    assert all(entry["gas"] == 150_000 for entry in gateway.submissions)


def test_zap_subcommand_dispatches_with_key_override(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    config = ZapConfig(
        chain=ChainConfig(name="bsc", rpc_urls=("https://bsc.example",)),
        chain_id=56,
        max_spend=1_000,
    )
    captured: list[ZapConfig] = []
    monkeypatch.setattr(cli, "load_zap_config", lambda *, env_file=None: config)
    monkeypatch.setattr(cli, "run_zap", lambda zap_config: captured.append(zap_config) or [])

    assert cli.main(["--keys", str(tmp_path / "keys.txt"), "zap"]) == 0

    (zap_config,) = captured
    assert zap_config.private_keys_file == tmp_path / "keys.txt"
