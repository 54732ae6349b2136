"""Shared constants for sapphire-calls."""

# Gas params of a signed call are assigned by the web3 gateway, the values
# below are placeholders the runtime recognizes.
DEFAULT_GAS_PRICE = 1
DEFAULT_GAS_LIMIT = 30_000_000
DEFAULT_VALUE = 0
DEFAULT_DATA = b""

# Leash defaults
DEFAULT_NONCE_RANGE = 20     # headroom above the pending nonce
DEFAULT_BLOCK_RANGE = 4000   # blocks the call stays valid for
BLOCK_DEPTH = 2              # anchor = latest - BLOCK_DEPTH
LEASH_BLOCK_MARGIN = 2       # blocks a cached leash must still have left

# EIP-712 domain of a signed query
SIGNED_CALL_DOMAIN_NAME = "oasis-runtime-sdk/evm: signed query"
SIGNED_CALL_DOMAIN_VERSION = "1.0.0"

# Ethereum
ETH_ADDRESS_SIZE = 20
ETH_SIGNATURE_SIZE = 65  # r(32) + s(32) + v(1)
BLOCK_HASH_SIZE = 32
ZERO_ADDRESS = "0x" + "00" * ETH_ADDRESS_SIZE

# Chain IDs
SAPPHIRE_MAINNET_CHAIN_ID = 0x5AFE
SAPPHIRE_TESTNET_CHAIN_ID = 0x5AFF
SAPPHIRE_LOCALNET_CHAIN_ID = 0x5AFD

# RPC URLs
SAPPHIRE_MAINNET_RPC_URL = "https://sapphire.oasis.io"
SAPPHIRE_TESTNET_RPC_URL = "https://testnet.sapphire.oasis.io"
SAPPHIRE_LOCALNET_RPC_URL = "http://localhost:8545"
