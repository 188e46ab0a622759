import os

import pytest

from vigil import ExecutionContext, FixedClock, Vigil, Instantiate
from vigil.storage import MemoryStore, ConfidentialStore, VaultConfig

# The mock clock is set to 100_000.
BLOCK_TIMESTAMP = 100_000

OWNER = "owner-0"
BENEFICIARY = "beneficiary-1"
OTHER_BENEFICIARY = "beneficiary-2"
THIRD_PARTY = "third-party-3"


@pytest.fixture
def clock():
    return FixedClock(BLOCK_TIMESTAMP)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def ctx(store, clock):
    """Instantiated contract context, calling as the owner."""
    context = ExecutionContext(caller=OWNER, store=store, clock=clock)
    Vigil.instantiate(context, Instantiate())
    return context


@pytest.fixture
def vault_config():
    return VaultConfig(master_keys={1: os.urandom(32)}, active_key_id=1)


@pytest.fixture
def confidential_store(vault_config):
    return ConfidentialStore(vault_config)
