from __future__ import annotations

from collections.abc import Callable, Iterator

import pytest
from faker import Faker

from proposal_scores.services.pending_guard import PENDING_REQUESTS, PendingRequestGuard


@pytest.fixture
def faker() -> Faker:
    """Provide a Faker instance for voter/test data generation."""
    return Faker("en_US")


@pytest.fixture
def address(faker: Faker) -> Callable[[], str]:
    """Factory for random EVM-style voter addresses."""

    def _make() -> str:
        return "0x" + faker.sha1(raw_output=False)

    return _make


@pytest.fixture
def pending_requests() -> Iterator[PendingRequestGuard]:
    """The process-wide guard, emptied before and after the test."""
    PENDING_REQUESTS.clear()
    yield PENDING_REQUESTS
    PENDING_REQUESTS.clear()
