"""In-memory chain and signer stand-ins for testing."""

from __future__ import annotations
from typing import Optional, Union

from eth_account import Account
from web3 import Web3

from sapphire_calls.constants import SAPPHIRE_TESTNET_CHAIN_ID
from sapphire_calls.leash import BlockId


def block_hash(number: int) -> bytes:
    return bytes(Web3.keccak(number.to_bytes(8, "big")))


class MockChainState:
    """Chain whose head can be moved by the test."""

    def __init__(self, head: int = 100, chain_id: int = SAPPHIRE_TESTNET_CHAIN_ID):
        self.head = head
        self.chain_id = chain_id
        self.block_requests: list = []
        self.chain_id_requests = 0
        self.fail_blocks = False

    async def get_block(self, block_id: Union[str, int] = "latest") -> Optional[BlockId]:
        self.block_requests.append(block_id)
        if self.fail_blocks:
            raise ConnectionError("rpc unreachable")
        number = self.head if block_id == "latest" else block_id
        if not isinstance(number, int) or number < 0 or number > self.head:
            return None
        return BlockId(number=number, hash=block_hash(number))

    async def get_chain_id(self) -> int:
        self.chain_id_requests += 1
        return self.chain_id


class MockSigner:
    """CallSigner backed by a throwaway eth_account key."""

    def __init__(self, chain_state: Optional[MockChainState] = None,
                 pending_nonce: int = 0):
        self.account = Account.create()
        self.chain_state = chain_state
        self.pending_nonce = pending_nonce
        self.nonce_requests = 0
        self.sign_requests = 0
        self.reject = False

    async def get_address(self) -> str:
        return self.account.address

    async def get_pending_nonce(self) -> int:
        self.nonce_requests += 1
        return self.pending_nonce

    async def sign_typed_data(self, domain: dict, types: dict, message: dict) -> bytes:
        self.sign_requests += 1
        if self.reject:
            raise PermissionError("user rejected the request")
        return bytes(self.account.sign_typed_data(domain, types, message).signature)


class MockCipher:
    """Cipher producing a recognizable, deterministic envelope."""

    def __init__(self):
        self.plaintexts: list[bytes] = []

    async def encrypt_envelope(self, plaintext: bytes) -> dict:
        self.plaintexts.append(plaintext)
        return {
            "format": 1,
            "body": {
                "pk": b"\x01" * 32,
                "nonce": b"\x02" * 15,
                "data": plaintext[::-1],
            },
        }
