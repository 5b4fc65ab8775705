"""Shared pytest fixtures and configuration."""

import pytest

from crowdfund_sync.clock import ManualClock
from crowdfund_sync.infrastructure import InMemoryLedger

from factories import T0, make_campaign, make_record


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as requiring external services (ledger gateway)"
    )


@pytest.fixture
def clock():
    """Manual clock starting at T0."""
    return ManualClock(start=T0)


@pytest.fixture
def sample_campaign():
    """Goal 1000, deadline T0+100, 500 donated."""
    return make_campaign(total_donated=500)


@pytest.fixture
def sample_record():
    """Contributor donated 500 to camp-001 and has not withdrawn."""
    return make_record()


@pytest.fixture
def ledger(clock, sample_campaign, sample_record):
    """In-memory ledger holding the sample campaign and record."""
    ledger = InMemoryLedger(clock=clock)
    ledger.add_campaign(sample_campaign)
    ledger.add_record(sample_record)
    return ledger
