"""Tests for configuration loading and logging setup."""

import json
import logging
import sys

import pytest

from sapphire_calls.config import (
    ChainConfig,
    SapphireCallsConfig,
    _JsonFormatter,
    get_chain_id,
    get_rpc_url,
    load_config,
    make_web3,
    setup_logging,
)
from sapphire_calls.constants import (
    DEFAULT_BLOCK_RANGE,
    DEFAULT_GAS_LIMIT,
    DEFAULT_NONCE_RANGE,
    SAPPHIRE_MAINNET_CHAIN_ID,
    SAPPHIRE_MAINNET_RPC_URL,
    SAPPHIRE_TESTNET_CHAIN_ID,
    SAPPHIRE_TESTNET_RPC_URL,
)
from sapphire_calls.exceptions import UpstreamQueryError
from sapphire_calls.leash import build_leash


class TestDefaults:
    def test_default_config(self):
        config = SapphireCallsConfig()
        assert config.chain.network == "sapphire-testnet"
        assert config.leash.nonce_range == DEFAULT_NONCE_RANGE
        assert config.leash.block_range == DEFAULT_BLOCK_RANGE
        assert config.call.gas_limit == DEFAULT_GAS_LIMIT
        assert config.log_level == "INFO"


class TestLoadConfig:
    def test_full_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "chain:\n"
            "  network: sapphire\n"
            "  rpc_url: http://localhost:8545\n"
            "leash:\n"
            "  nonce_range: 5\n"
            "  block_range: 100\n"
            "call:\n"
            "  gas_limit: 1000000\n"
            "log_level: DEBUG\n"
        )
        config = load_config(path)
        assert config.chain.network == "sapphire"
        assert config.chain.rpc_url == "http://localhost:8545"
        assert config.chain.chain_id is None
        assert config.leash.nonce_range == 5
        assert config.leash.block_range == 100
        assert config.call.gas_limit == 1_000_000
        assert config.log_level == "DEBUG"

    def test_partial_leash_section(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("leash:\n  block_range: 50\n")
        config = load_config(path)
        assert config.leash.block_range == 50
        assert config.leash.nonce_range == DEFAULT_NONCE_RANGE

    def test_empty_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(path) == SapphireCallsConfig()


class TestResolution:
    def test_rpc_url_from_network(self):
        assert get_rpc_url(ChainConfig(network="sapphire")) == SAPPHIRE_MAINNET_RPC_URL

    def test_custom_rpc_url(self):
        assert get_rpc_url(ChainConfig(rpc_url="http://node:8545")) == "http://node:8545"

    def test_unknown_network_falls_back(self):
        assert get_rpc_url(ChainConfig(network="nope")) == SAPPHIRE_TESTNET_RPC_URL
        assert get_chain_id(ChainConfig(network="nope")) == SAPPHIRE_TESTNET_CHAIN_ID

    def test_chain_id_from_network(self):
        assert get_chain_id(ChainConfig(network="sapphire")) == SAPPHIRE_MAINNET_CHAIN_ID

    def test_explicit_chain_id(self):
        assert get_chain_id(ChainConfig(chain_id=1337)) == 1337

    def test_make_web3(self):
        w3 = make_web3(ChainConfig(rpc_url="http://node:8545"))
        assert w3.provider.endpoint_uri == "http://node:8545"


class TestJsonFormatter:
    def test_format(self):
        record = logging.LogRecord(
            "sapphire_calls.leash", logging.INFO, __file__, 1,
            "Built leash: nonce=%d", (23,), None,
        )
        out = json.loads(_JsonFormatter().format(record))
        assert out["level"] == "INFO"
        assert out["logger"] == "sapphire_calls.leash"
        assert out["message"] == "Built leash: nonce=23"

    def test_operation_field(self):
        record = logging.LogRecord(
            "sapphire_calls.leash", logging.ERROR, __file__, 1,
            "%s failed: %s", ("get_block", "timeout"), None,
        )
        record.operation = "get_block"
        out = json.loads(_JsonFormatter().format(record))
        assert out["operation"] == "get_block"
        assert "exc_info" not in out

    def test_plain_record_has_no_operation(self):
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "hi", (), None)
        assert "operation" not in json.loads(_JsonFormatter().format(record))

    def test_exception_is_included(self):
        try:
            raise TimeoutError("nonce lookup timed out")
        except TimeoutError:
            exc_info = sys.exc_info()
        record = logging.LogRecord("x", logging.ERROR, __file__, 1, "boom", (), exc_info)
        out = json.loads(_JsonFormatter().format(record))
        assert "TimeoutError: nonce lookup timed out" in out["exc_info"]

    async def test_query_failure_is_tagged(self, signer, chain, cache, caplog):
        chain.fail_blocks = True
        with caplog.at_level(logging.ERROR, logger="sapphire_calls.leash"):
            with pytest.raises(UpstreamQueryError):
                await build_leash(signer, cache)
        assert caplog.records[0].operation == "get_block"


class TestSetupLogging:
    def test_json_handler(self, monkeypatch):
        calls = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.append(kw))
        setup_logging("debug", json_log=True)
        assert calls[0]["level"] == logging.DEBUG
        assert isinstance(calls[0]["handlers"][0].formatter, _JsonFormatter)

    def test_unknown_level_defaults_to_info(self, monkeypatch):
        calls = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.append(kw))
        setup_logging("chatty")
        assert calls[0]["level"] == logging.INFO

    def test_level_from_config(self, monkeypatch):
        calls = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.append(kw))
        setup_logging(config=SapphireCallsConfig(log_level="WARNING"))
        assert calls[0]["level"] == logging.WARNING
        assert "format" in calls[0]

    def test_explicit_level_wins(self, monkeypatch):
        calls = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.append(kw))
        setup_logging("ERROR", config=SapphireCallsConfig(log_level="DEBUG"))
        assert calls[0]["level"] == logging.ERROR
