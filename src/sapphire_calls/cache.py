"""Signature and leash memo shared by the signed calls of one client."""

from __future__ import annotations
import logging
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from sapphire_calls.calls import SignableEthCall
    from sapphire_calls.leash import Leash

logger = logging.getLogger(__name__)


class SignedCallCache:
    """Caches signatures per signer and the last leash per chain.

    Entries never expire on their own. A stale leash is detected by
    ``build_leash`` on next use, which then clears everything.
    """

    def __init__(self):
        self._signatures: dict[str, dict[bytes, bytes]] = {}
        self._leashes: dict[int, Leash] = {}

    def clear(self) -> None:
        self._signatures.clear()
        self._leashes.clear()

    def cache(self, address: str, chain_id: int, call: SignableEthCall,
              hash_: bytes, signature: bytes) -> None:
        """Store a signature and remember the call's leash for its chain."""
        self._signatures.setdefault(address.lower(), {})[bytes(hash_)] = bytes(signature)
        self._leashes[chain_id] = call.leash
        logger.debug("Cached signature for %s on chain %d", address, chain_id)

    def get(self, address: str, hash_: bytes) -> Optional[bytes]:
        return self._signatures.get(address.lower(), {}).get(bytes(hash_))

    def get_leash(self, chain_id: int) -> Optional[Leash]:
        return self._leashes.get(chain_id)

    def __len__(self) -> int:
        return sum(len(v) for v in self._signatures.values())
