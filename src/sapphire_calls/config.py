"""YAML configuration loading and logging setup for sapphire-calls."""

from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml
from web3 import AsyncWeb3

from sapphire_calls.constants import (
    DEFAULT_BLOCK_RANGE,
    DEFAULT_GAS_LIMIT,
    DEFAULT_NONCE_RANGE,
    SAPPHIRE_LOCALNET_CHAIN_ID,
    SAPPHIRE_LOCALNET_RPC_URL,
    SAPPHIRE_MAINNET_CHAIN_ID,
    SAPPHIRE_MAINNET_RPC_URL,
    SAPPHIRE_TESTNET_CHAIN_ID,
    SAPPHIRE_TESTNET_RPC_URL,
)

logger = logging.getLogger(__name__)

RPC_URLS = {
    "sapphire": SAPPHIRE_MAINNET_RPC_URL,
    "sapphire-testnet": SAPPHIRE_TESTNET_RPC_URL,
    "sapphire-localnet": SAPPHIRE_LOCALNET_RPC_URL,
}

CHAIN_IDS = {
    "sapphire": SAPPHIRE_MAINNET_CHAIN_ID,
    "sapphire-testnet": SAPPHIRE_TESTNET_CHAIN_ID,
    "sapphire-localnet": SAPPHIRE_LOCALNET_CHAIN_ID,
}


@dataclass
class ChainConfig:
    network: str = "sapphire-testnet"
    rpc_url: Optional[str] = None
    chain_id: Optional[int] = None


@dataclass
class LeashConfig:
    nonce_range: int = DEFAULT_NONCE_RANGE
    block_range: int = DEFAULT_BLOCK_RANGE


@dataclass
class CallDefaults:
    gas_limit: int = DEFAULT_GAS_LIMIT


@dataclass
class SapphireCallsConfig:
    chain: ChainConfig = field(default_factory=ChainConfig)
    leash: LeashConfig = field(default_factory=LeashConfig)
    call: CallDefaults = field(default_factory=CallDefaults)
    log_level: str = "INFO"


def load_config(path: Path) -> SapphireCallsConfig:
    """Load configuration from a YAML file."""
    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    config = SapphireCallsConfig()

    if "chain" in raw:
        c = raw["chain"]
        config.chain = ChainConfig(
            network=c.get("network", "sapphire-testnet"),
            rpc_url=c.get("rpc_url"),
            chain_id=c.get("chain_id"),
        )

    if "leash" in raw:
        lsh = raw["leash"]
        config.leash = LeashConfig(
            nonce_range=lsh.get("nonce_range", DEFAULT_NONCE_RANGE),
            block_range=lsh.get("block_range", DEFAULT_BLOCK_RANGE),
        )

    if "call" in raw:
        config.call = CallDefaults(
            gas_limit=raw["call"].get("gas_limit", DEFAULT_GAS_LIMIT),
        )

    config.log_level = raw.get("log_level", "INFO")
    logger.debug("Loaded config from %s (network=%s)", path, config.chain.network)
    return config


def get_rpc_url(config: ChainConfig) -> str:
    """Resolve RPC URL from config (custom URL or network name)."""
    if config.rpc_url:
        return config.rpc_url
    return RPC_URLS.get(config.network, SAPPHIRE_TESTNET_RPC_URL)


def get_chain_id(config: ChainConfig) -> int:
    """Resolve chain ID from config."""
    if config.chain_id is not None:
        return config.chain_id
    return CHAIN_IDS.get(config.network, SAPPHIRE_TESTNET_CHAIN_ID)


def make_web3(config: ChainConfig) -> AsyncWeb3:
    """Build an AsyncWeb3 connected to the configured RPC endpoint."""
    return AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(get_rpc_url(config)))


class _JsonFormatter(logging.Formatter):
    """One JSON object per record, carrying the failed operation if any."""

    def format(self, record):
        entry = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        operation = getattr(record, "operation", None)
        if operation is not None:
            entry["operation"] = operation
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def setup_logging(level: Optional[str] = None, json_log: bool = False,
                  config: Optional[SapphireCallsConfig] = None) -> None:
    """Configure root logging for an application that prepares signed calls.

    The package itself only emits through ``logging.getLogger(__name__)``;
    call this once at startup. ``level`` wins over ``config.log_level``.
    With ``json_log`` each record becomes a JSON line, and upstream query
    and signing failures carry an ``operation`` field.
    """
    if level is None:
        level = config.log_level if config is not None else "INFO"
    numeric = getattr(logging, level.upper(), logging.INFO)
    if json_log:
        handler = logging.StreamHandler()
        handler.setFormatter(_JsonFormatter())
        logging.basicConfig(level=numeric, handlers=[handler])
    else:
        logging.basicConfig(
            level=numeric,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
