"""Test configuration and fixtures."""

import pytest

from tests.helpers import SteppingClock


@pytest.fixture
def clock() -> SteppingClock:
    """Deterministic clock for created_at/updated_at assertions."""
    return SteppingClock()
