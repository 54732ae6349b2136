"""Signer capabilities consumed by the signed-call builder, and adapters.

The builder only needs an address, the pending nonce, EIP-712 signing and,
optionally, a chain-state source for blocks and the chain id. Concrete
signers (a local ``eth_account`` key, or an account managed by the node)
are wrapped into that shape here.
"""

from __future__ import annotations
import json
import logging
from typing import Any, Optional, Protocol, Union

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncWeb3, Web3
from web3.exceptions import BlockNotFound

from sapphire_calls.exceptions import ConfigurationError
from sapphire_calls.leash import BlockId

logger = logging.getLogger(__name__)

# Field types of the EIP712Domain struct, in canonical order.
EIP712_DOMAIN_FIELDS = [
    ("name", "string"),
    ("version", "string"),
    ("chainId", "uint256"),
    ("verifyingContract", "address"),
    ("salt", "bytes32"),
]


class ChainState(Protocol):
    """Read access to blocks and the chain id."""

    async def get_block(self, block_id: Union[str, int] = "latest") -> Optional[BlockId]:
        ...

    async def get_chain_id(self) -> int:
        ...


class CallSigner(Protocol):
    """What the builder needs from a signer."""

    chain_state: Optional[ChainState]

    async def get_address(self) -> str:
        ...

    async def get_pending_nonce(self) -> int:
        ...

    async def sign_typed_data(self, domain: dict, types: dict, message: dict) -> bytes:
        ...


class Web3ChainState:
    """ChainState backed by an AsyncWeb3 connection."""

    def __init__(self, w3: AsyncWeb3):
        self._w3 = w3

    async def get_block(self, block_id: Union[str, int] = "latest") -> Optional[BlockId]:
        try:
            block = await self._w3.eth.get_block(block_id)
        except BlockNotFound:
            logger.warning("Block %s not found", block_id)
            return None
        return BlockId(number=block["number"], hash=bytes(block["hash"]))

    async def get_chain_id(self) -> int:
        return await self._w3.eth.chain_id


class AccountSigner:
    """Signs locally with an eth_account key; queries the chain through web3."""

    def __init__(self, account: LocalAccount, w3: Optional[AsyncWeb3] = None):
        self._account = account
        self._w3 = w3
        self.chain_state: Optional[ChainState] = Web3ChainState(w3) if w3 is not None else None

    @classmethod
    def from_key(cls, private_key: str, w3: Optional[AsyncWeb3] = None) -> AccountSigner:
        return cls(Account.from_key(private_key), w3)

    @property
    def address(self) -> str:
        return self._account.address

    async def get_address(self) -> str:
        return self._account.address

    async def get_pending_nonce(self) -> int:
        if self._w3 is None:
            raise ConfigurationError(
                "AccountSigner has no web3 connection to look up its pending nonce"
            )
        return await self._w3.eth.get_transaction_count(self._account.address, "pending")

    async def sign_typed_data(self, domain: dict, types: dict, message: dict) -> bytes:
        signed = self._account.sign_typed_data(domain, types, message)
        return bytes(signed.signature)


def _primary_type(types: dict) -> str:
    referenced = {f["type"] for fields in types.values() for f in fields}
    roots = [name for name in types if name not in referenced]
    if len(roots) != 1:
        raise ConfigurationError(f"Cannot determine primary type from {sorted(types)}")
    return roots[0]


def _jsonable(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    return value


class NodeSigner:
    """Account managed by the connected node, signing via eth_signTypedData_v4."""

    def __init__(self, w3: AsyncWeb3, address: str):
        self._w3 = w3
        self._address = Web3.to_checksum_address(address)
        self.chain_state: Optional[ChainState] = Web3ChainState(w3)

    async def get_address(self) -> str:
        return self._address

    async def get_pending_nonce(self) -> int:
        return await self._w3.eth.get_transaction_count(self._address, "pending")

    async def sign_typed_data(self, domain: dict, types: dict, message: dict) -> bytes:
        domain_fields = [
            {"name": name, "type": type_}
            for name, type_ in EIP712_DOMAIN_FIELDS if name in domain
        ]
        typed_data = {
            "types": {"EIP712Domain": domain_fields, **types},
            "primaryType": _primary_type(types),
            "domain": _jsonable(domain),
            "message": _jsonable(message),
        }
        response = await self._w3.provider.make_request(
            "eth_signTypedData_v4", [self._address, json.dumps(typed_data)]
        )
        if response.get("error"):
            raise RuntimeError(f"eth_signTypedData_v4 rejected: {response['error']}")
        return bytes(Web3.to_bytes(hexstr=response["result"]))
