"""Test configuration for pytest.

Fixtures shared by all tests; the builders live in tests/fixtures.py.
"""

import pytest
from solders.pubkey import Pubkey

from tests.fixtures import FakeSolanaClient, PoolScenario


@pytest.fixture
def scenario() -> PoolScenario:
    return PoolScenario()


@pytest.fixture
def fake_client(scenario) -> FakeSolanaClient:
    return FakeSolanaClient(
        transactions={scenario.signature: scenario.transaction()},
        accounts={Pubkey.from_string(scenario.market_id): scenario.market_account()},
    )
