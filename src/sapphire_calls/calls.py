"""Normalization of loosely-typed eth_call requests into signable calls."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Mapping, Optional, TypedDict, Union

from web3 import Web3

from sapphire_calls.config import CallDefaults
from sapphire_calls.constants import (
    DEFAULT_DATA,
    DEFAULT_GAS_PRICE,
    DEFAULT_VALUE,
    ZERO_ADDRESS,
)
from sapphire_calls.exceptions import ConfigurationError
from sapphire_calls.leash import Leash

Quantity = Union[int, str]
BytesLike = Union[bytes, bytearray, memoryview, list, tuple, str]

# web3.py names the gas limit "gas", ethers.js names it "gasLimit".
EthCall = TypedDict("EthCall", {
    "from": str,
    "to": str,
    "value": Quantity,
    "gasPrice": Quantity,
    "gas": Quantity,
    "gasLimit": Quantity,
    "data": BytesLike,
}, total=False)


def parse_quantity(value: Quantity, name: str = "value") -> int:
    """Convert an int, decimal string or 0x-hex string to an int."""
    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be a number, got bool")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            if value.lower().startswith("0x"):
                return int(value, 16)
            return int(value)
        except ValueError as e:
            raise ConfigurationError(f"Invalid {name}: {value!r}") from e
    raise ConfigurationError(f"{name} must be int or str, got {type(value).__name__}")


def parse_bytes_like(data: BytesLike) -> bytes:
    """Convert bytes, a list of byte values or a hex string to bytes."""
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    if isinstance(data, (list, tuple)):
        return bytes(data)
    if isinstance(data, str):
        try:
            return bytes(Web3.to_bytes(hexstr=data))
        except ValueError as e:
            raise ConfigurationError(f"Invalid hex data: {data!r}") from e
    raise ConfigurationError(f"Unsupported data type: {type(data).__name__}")


@dataclass(frozen=True)
class SignableEthCall:
    """Canonical form of a call, as hashed and signed with EIP-712."""

    from_address: str
    to: str
    gas_limit: int
    gas_price: int
    value: int
    data: bytes
    leash: Leash

    def to_typed_data(self) -> dict:
        return {
            "from": self.from_address,
            "to": self.to,
            "gasLimit": self.gas_limit,
            "gasPrice": self.gas_price,
            "value": self.value,
            "data": self.data,
            "leash": self.leash.to_typed_data(),
        }


def _present(call: Mapping[str, Any], key: str) -> bool:
    return call.get(key) is not None


def _check_range(value: int, name: str, bits: int) -> int:
    if not 0 <= value < 2 ** bits:
        raise ConfigurationError(f"{name} must fit in uint{bits}, got {value}")
    return value


def _check_address(address: Any, name: str) -> str:
    if not isinstance(address, str) or not Web3.is_address(address):
        raise ConfigurationError(f"Invalid {name} address: {address!r}")
    return address


def make_signable_call(call: Mapping[str, Any], leash: Leash,
                       defaults: Optional[CallDefaults] = None) -> SignableEthCall:
    """Map an eth_call request and its leash to a ``SignableEthCall``.

    Accepts either ``gas`` or ``gasLimit`` but never both. Missing fields
    get the sentinel defaults the runtime expects. Values that do not fit
    the EIP-712 field types are rejected here rather than at hashing time.
    """
    defaults = defaults or CallDefaults()

    if not _present(call, "from"):
        raise ConfigurationError("call is missing a 'from' address")
    if _present(call, "gas") and _present(call, "gasLimit"):
        raise ConfigurationError("call must not set both 'gas' and 'gasLimit'")

    if _present(call, "gas"):
        gas_limit = parse_quantity(call["gas"], "gas")
    elif _present(call, "gasLimit"):
        gas_limit = parse_quantity(call["gasLimit"], "gasLimit")
    else:
        gas_limit = defaults.gas_limit

    gas_price = (parse_quantity(call["gasPrice"], "gasPrice")
                 if _present(call, "gasPrice") else DEFAULT_GAS_PRICE)
    value = parse_quantity(call["value"], "value") if _present(call, "value") else DEFAULT_VALUE
    data = parse_bytes_like(call["data"]) if call.get("data") else DEFAULT_DATA

    return SignableEthCall(
        from_address=_check_address(call["from"], "from"),
        to=_check_address(call["to"], "to") if _present(call, "to") else ZERO_ADDRESS,
        gas_limit=_check_range(gas_limit, "gas limit", 64),
        gas_price=_check_range(gas_price, "gasPrice", 256),
        value=_check_range(value, "value", 256),
        data=data,
        leash=leash,
    )
