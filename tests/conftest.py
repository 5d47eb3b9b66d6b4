"""
Shared pytest fixtures and configuration for all tests.

Fixtures hand each test fresh fake collaborators (codes are single-use, so
the code store must not be shared) and a processor wired to them.
"""

import os
import sys

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from oauth_test_helpers import (
    CODE_TTL,
    FakeClientStore,
    FakeCodeStore,
    FakeIdTokenIssuer,
    FakeRefreshStore,
    FakeTokenIssuer,
    FakeUsers,
)
from tokenforge.auth.token import TokenRequestProcessor
from tokenforge.config.settings import reset_settings


@pytest.fixture(autouse=True)
def clean_settings():
    """Settings are a singleton; rebuild them for every test."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def client_store():
    return FakeClientStore()


@pytest.fixture
def code_store():
    return FakeCodeStore()


@pytest.fixture
def token_issuer():
    return FakeTokenIssuer()


@pytest.fixture
def id_token_issuer():
    return FakeIdTokenIssuer()


@pytest.fixture
def processor(code_store, token_issuer, id_token_issuer):
    return TokenRequestProcessor(
        code_store=code_store,
        users=FakeUsers(),
        refresh_store=FakeRefreshStore(),
        token_issuer=token_issuer,
        id_token_issuer=id_token_issuer,
        code_ttl=CODE_TTL,
    )
