"""Signed and encrypted confidential calls for Oasis Sapphire."""

from sapphire_calls.cache import SignedCallCache
from sapphire_calls.config import setup_logging
from sapphire_calls.calls import EthCall, SignableEthCall, make_signable_call
from sapphire_calls.envelope import Cipher, SignedCallDataPack, decode_data_pack
from sapphire_calls.exceptions import (
    ConfigurationError,
    SignedCallError,
    SigningError,
    UpstreamQueryError,
)
from sapphire_calls.leash import BlockId, Leash, LeashOverrides, build_leash
from sapphire_calls.signer import AccountSigner, CallSigner, ChainState, NodeSigner, Web3ChainState
from sapphire_calls.signing import sign_call, signed_call_eip712_params, typed_data_hash

__version__ = "0.1.0"

__all__ = [
    "AccountSigner",
    "BlockId",
    "CallSigner",
    "ChainState",
    "Cipher",
    "ConfigurationError",
    "EthCall",
    "Leash",
    "LeashOverrides",
    "NodeSigner",
    "SignableEthCall",
    "SignedCallCache",
    "SignedCallDataPack",
    "SignedCallError",
    "SigningError",
    "UpstreamQueryError",
    "Web3ChainState",
    "build_leash",
    "decode_data_pack",
    "make_signable_call",
    "setup_logging",
    "sign_call",
    "signed_call_eip712_params",
    "typed_data_hash",
    "__version__",
]
