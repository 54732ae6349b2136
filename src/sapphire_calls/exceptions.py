"""Exceptions raised while preparing signed calls."""

from __future__ import annotations
from typing import Optional


class SignedCallError(Exception):
    """Base class for all sapphire-calls errors."""


class ConfigurationError(SignedCallError, ValueError):
    """Missing chain-state source, missing chain id or contradictory input."""


class UpstreamQueryError(SignedCallError):
    """A nonce, block or chain-id query against the chain failed."""

    def __init__(self, operation: str, cause: Optional[BaseException] = None,
                 message: str = ""):
        self.operation = operation
        self.cause = cause
        detail = message or (str(cause) if cause is not None else "query failed")
        super().__init__(f"{operation}: {detail}")


class SigningError(SignedCallError):
    """The signer rejected or failed to produce a typed-data signature."""

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation}: {cause}")
