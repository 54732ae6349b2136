"""Shared pytest fixtures for sapphire-calls tests."""

import pytest

from sapphire_calls.cache import SignedCallCache

from mock_chain import MockChainState, MockSigner


@pytest.fixture
def chain():
    return MockChainState(head=100)


@pytest.fixture
def signer(chain):
    return MockSigner(chain_state=chain, pending_nonce=3)


@pytest.fixture
def cache():
    return SignedCallCache()
