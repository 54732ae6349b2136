"""EIP-712 signing of calls bound to a leash.

The domain and type schema must match the runtime's verifier exactly.
"""

from __future__ import annotations
import logging
from typing import TYPE_CHECKING, Optional

from eth_account import Account
from eth_account.messages import SignableMessage, encode_typed_data
from web3 import Web3

from sapphire_calls.constants import (
    ETH_SIGNATURE_SIZE,
    SIGNED_CALL_DOMAIN_NAME,
    SIGNED_CALL_DOMAIN_VERSION,
)
from sapphire_calls.exceptions import ConfigurationError, SignedCallError, SigningError
from sapphire_calls.leash import query

if TYPE_CHECKING:
    from sapphire_calls.cache import SignedCallCache
    from sapphire_calls.calls import SignableEthCall
    from sapphire_calls.signer import CallSigner

logger = logging.getLogger(__name__)


def signed_call_eip712_params(chain_id: int) -> tuple[dict, dict]:
    """Return the (domain, types) pair for a signed call on ``chain_id``."""
    domain = {
        "name": SIGNED_CALL_DOMAIN_NAME,
        "version": SIGNED_CALL_DOMAIN_VERSION,
        "chainId": chain_id,
    }
    types = {
        "Call": [
            {"name": "from", "type": "address"},
            {"name": "to", "type": "address"},
            {"name": "gasLimit", "type": "uint64"},
            {"name": "gasPrice", "type": "uint256"},
            {"name": "value", "type": "uint256"},
            {"name": "data", "type": "bytes"},
            {"name": "leash", "type": "Leash"},
        ],
        "Leash": [
            {"name": "nonce", "type": "uint64"},
            {"name": "blockNumber", "type": "uint64"},
            {"name": "blockHash", "type": "bytes32"},
            {"name": "blockRange", "type": "uint64"},
        ],
    }
    return domain, types


def encode_signed_call(call: SignableEthCall, chain_id: int) -> SignableMessage:
    domain, types = signed_call_eip712_params(chain_id)
    return encode_typed_data(domain, types, call.to_typed_data())


def typed_data_hash(call: SignableEthCall, chain_id: int) -> bytes:
    """EIP-712 digest of ``call``: keccak256(0x19 0x01 || domain || struct)."""
    message = encode_signed_call(call, chain_id)
    return bytes(Web3.keccak(b"\x19" + message.version + message.header + message.body))


def recover_call_signer(call: SignableEthCall, chain_id: int, signature: bytes) -> str:
    """Recover the address that produced ``signature`` over ``call``."""
    return Account.recover_message(encode_signed_call(call, chain_id), signature=signature)


async def sign_call(call: SignableEthCall, signer: CallSigner, cache: SignedCallCache,
                    chain_id: Optional[int] = None,
                    reuse_signatures: bool = False) -> bytes:
    """Sign ``call`` with EIP-712 and record the result in ``cache``.

    By default the signer is asked for a fresh signature even when the cache
    already holds one for the same hash; the cache entry then only serves
    leash reuse. ``reuse_signatures=True`` returns the cached signature
    instead.
    """
    address = await query("get_address", signer.get_address)
    if chain_id is None:
        if signer.chain_state is None:
            raise ConfigurationError(
                "must either connect a chain-state source or pass chain_id"
            )
        chain_id = await query("get_chain_id", signer.chain_state.get_chain_id)

    domain, types = signed_call_eip712_params(chain_id)
    hash_ = typed_data_hash(call, chain_id)

    signature = cache.get(address, hash_)
    if signature is not None and reuse_signatures:
        logger.debug("Reusing cached signature for %s (hash=0x%s)", address, hash_.hex())
    else:
        try:
            signature = await signer.sign_typed_data(domain, types, call.to_typed_data())
        except SignedCallError:
            raise
        except Exception as e:
            logger.error("Typed data signing failed for %s: %s", address, e,
                         extra={"operation": "sign_typed_data"})
            raise SigningError("sign_typed_data", e) from e
        if len(signature) != ETH_SIGNATURE_SIZE:
            raise SigningError("sign_typed_data", ValueError(
                f"expected a {ETH_SIGNATURE_SIZE}-byte signature, got {len(signature)}"
            ))

    cache.cache(address, chain_id, call, hash_, signature)
    return signature
