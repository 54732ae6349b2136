"""Leash construction for signed calls.

A leash bounds the validity of a signed call: the runtime accepts the call
only while the signer's pending nonce is below ``nonce`` and the current
block lies in ``[block_number, block_number + block_range)``.
"""

from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Union

from web3 import Web3

from sapphire_calls.config import LeashConfig
from sapphire_calls.constants import BLOCK_DEPTH, BLOCK_HASH_SIZE, LEASH_BLOCK_MARGIN
from sapphire_calls.exceptions import (
    ConfigurationError,
    SignedCallError,
    UpstreamQueryError,
)

if TYPE_CHECKING:
    from sapphire_calls.cache import SignedCallCache
    from sapphire_calls.signer import CallSigner, ChainState

logger = logging.getLogger(__name__)

BlockTag = Union[str, int]


def _hash_bytes(value: Union[bytes, str]) -> bytes:
    if isinstance(value, str):
        value = Web3.to_bytes(hexstr=value)
    value = bytes(value)
    if len(value) != BLOCK_HASH_SIZE:
        raise ConfigurationError(
            f"Block hash must be {BLOCK_HASH_SIZE} bytes, got {len(value)}"
        )
    return value


@dataclass(frozen=True)
class BlockId:
    """Number and hash of the block a leash is anchored to."""

    number: int
    hash: bytes

    def __post_init__(self):
        object.__setattr__(self, "hash", _hash_bytes(self.hash))


@dataclass(frozen=True)
class Leash:
    nonce: int          # largest sender nonce for which the call is valid
    block_number: int   # block at which validity starts
    block_hash: bytes   # expected hash of the block at block_number
    block_range: int    # number of blocks past block_number the call is valid for

    def __post_init__(self):
        object.__setattr__(self, "block_hash", _hash_bytes(self.block_hash))

    def to_typed_data(self) -> dict:
        """camelCase form embedded in the EIP-712 ``Call`` message."""
        return {
            "nonce": self.nonce,
            "blockNumber": self.block_number,
            "blockHash": self.block_hash,
            "blockRange": self.block_range,
        }

    def to_wire(self) -> dict:
        """snake_case form carried in the CBOR envelope."""
        return {
            "nonce": self.nonce,
            "block_number": self.block_number,
            "block_hash": self.block_hash,
            "block_range": self.block_range,
        }


@dataclass(frozen=True)
class LeashOverrides:
    nonce: Optional[int] = None
    block: Optional[BlockId] = None
    block_tag: Optional[BlockTag] = None
    block_range: Optional[int] = None

    @property
    def pins_state(self) -> bool:
        """True when the caller deviates from the ambient nonce or block."""
        return (self.nonce is not None or self.block is not None
                or self.block_tag is not None)


async def query(operation: str, fn: Callable[..., Awaitable[Any]], *args) -> Any:
    """Await an upstream query, tagging failures with the operation name."""
    try:
        return await fn(*args)
    except SignedCallError:
        raise
    except Exception as e:
        logger.error("%s failed: %s", operation, e, extra={"operation": operation})
        raise UpstreamQueryError(operation, e) from e


def require_chain_state(signer: CallSigner) -> ChainState:
    if signer.chain_state is None:
        raise ConfigurationError("signer is not connected to a chain-state source")
    return signer.chain_state


async def _resolve_nonce(signer: CallSigner, overrides: LeashOverrides) -> int:
    if overrides.nonce is not None:
        return overrides.nonce
    return await query("get_pending_nonce", signer.get_pending_nonce)


async def _resolve_block(signer: CallSigner, overrides: LeashOverrides) -> BlockId:
    if overrides.block is not None:
        return overrides.block

    chain_state = require_chain_state(signer)
    if overrides.block_tag is not None:
        block = await query("get_block", chain_state.get_block, overrides.block_tag)
    else:
        latest = await query("get_block", chain_state.get_block, "latest")
        if latest is None:
            raise UpstreamQueryError("get_block", message="unable to get latest block")
        block = await query("get_block", chain_state.get_block,
                            latest.number - BLOCK_DEPTH)
    if block is None:
        raise UpstreamQueryError("get_block", message="unable to get anchor block")
    return block


async def build_leash(signer: CallSigner, cache: SignedCallCache,
                      overrides: Optional[LeashOverrides] = None,
                      config: Optional[LeashConfig] = None) -> Leash:
    """Build the leash for the next signed call of ``signer``.

    Without overrides the last leash issued on the chain is reused while it
    still has nonce and block headroom. Overriding the nonce or the block
    clears the whole cache first.
    """
    overrides = overrides or LeashOverrides()
    config = config or LeashConfig()

    if overrides.block is not None and overrides.block_tag is not None:
        raise ConfigurationError("block and block_tag overrides are mutually exclusive")

    if overrides.pins_state:
        logger.debug("Leash overrides supplied, clearing signed call cache")
        cache.clear()

    # Both lookups run to completion so a failure in one never orphans the other.
    results = await asyncio.gather(
        _resolve_nonce(signer, overrides),
        _resolve_block(signer, overrides),
        return_exceptions=True,
    )
    for result in results:
        if isinstance(result, BaseException):
            raise result
    nonce, block = results

    if not overrides.pins_state:
        chain_id = await query("get_chain_id", require_chain_state(signer).get_chain_id)
        cached = cache.get_leash(chain_id)
        if cached is not None:
            if (cached.nonce > nonce
                    and cached.block_number + cached.block_range
                    > block.number + LEASH_BLOCK_MARGIN):
                logger.debug(
                    "Reusing cached leash for chain %d (nonce=%d, block=%d)",
                    chain_id, cached.nonce, cached.block_number,
                )
                return cached
            logger.debug("Cached leash for chain %d is stale, clearing cache", chain_id)
            cache.clear()

    leash = Leash(
        nonce=overrides.nonce if overrides.nonce is not None
        else nonce + config.nonce_range,
        block_number=block.number,
        block_hash=block.hash,
        block_range=overrides.block_range if overrides.block_range is not None
        else config.block_range,
    )
    logger.info(
        "Built leash: nonce=%d block=%d range=%d",
        leash.nonce, leash.block_number, leash.block_range,
    )
    return leash
