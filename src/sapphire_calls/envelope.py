"""Signed call data packs and their CBOR wire encoding.

The encoded pack replaces the ``data`` field of an eth_call:

    {data?: {body} | <encrypted envelope>, leash, signature}

Maps are written in canonical CBOR (length-first key order), which is
what the runtime decoder expects.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol, Union

import cbor2
from web3 import Web3

from sapphire_calls.cache import SignedCallCache
from sapphire_calls.calls import make_signable_call, parse_bytes_like
from sapphire_calls.config import CallDefaults, LeashConfig
from sapphire_calls.leash import Leash, LeashOverrides, build_leash
from sapphire_calls.signer import CallSigner
from sapphire_calls.signing import sign_call

logger = logging.getLogger(__name__)


class Cipher(Protocol):
    """Encrypts call data into an envelope whose shape the cipher owns."""

    async def encrypt_envelope(self, plaintext: bytes) -> Mapping[str, Any]:
        ...


@dataclass(frozen=True)
class SignedCallDataPack:
    leash: Leash
    signature: bytes                # EIP-712 signature over call + leash
    data: Optional[bytes] = None    # plaintext call body, if the call had one

    @classmethod
    async def make(cls, call: Mapping[str, Any], signer: CallSigner,
                   cache: SignedCallCache,
                   overrides: Optional[LeashOverrides] = None,
                   chain_id: Optional[int] = None,
                   leash_config: Optional[LeashConfig] = None,
                   call_defaults: Optional[CallDefaults] = None,
                   reuse_signatures: bool = False) -> SignedCallDataPack:
        """Build the leash, sign the call and pack the result."""
        leash = await build_leash(signer, cache, overrides, leash_config)
        signable = make_signable_call(call, leash, call_defaults)
        signature = await sign_call(signable, signer, cache, chain_id=chain_id,
                                    reuse_signatures=reuse_signatures)
        data = parse_bytes_like(call["data"]) if call.get("data") else None
        return cls(leash=leash, signature=signature, data=data or None)

    def encode(self) -> str:
        """Hex-encoded CBOR of the pack with a plaintext body."""
        return self._encode({"body": self.data} if self.data else None)

    async def encrypt_encode(self, cipher: Cipher) -> str:
        """Hex-encoded CBOR of the pack with the body encrypted by ``cipher``."""
        if self.data:
            return self._encode(await cipher.encrypt_envelope(self.data))
        return self.encode()

    def _encode(self, data: Optional[Mapping[str, Any]]) -> str:
        record: dict[str, Any] = {
            "leash": self.leash.to_wire(),
            "signature": self.signature,
        }
        if data is not None:
            record["data"] = dict(data)
        encoded = cbor2.dumps(record, canonical=True)
        logger.debug("Encoded signed call data pack (%d bytes)", len(encoded))
        return Web3.to_hex(encoded)


def decode_data_pack(encoded: Union[str, bytes]) -> dict:
    """Decode an encoded pack back into its CBOR record.

    Only parses; the leash and signature are not validated.
    """
    if isinstance(encoded, str):
        encoded = Web3.to_bytes(hexstr=encoded)
    record = cbor2.loads(bytes(encoded))
    if not isinstance(record, dict):
        raise ValueError(f"Signed call data pack must be a map, got {type(record).__name__}")
    missing = [key for key in ("leash", "signature") if key not in record]
    if missing:
        raise ValueError(f"Signed call data pack missing fields: {', '.join(missing)}")
    return record
