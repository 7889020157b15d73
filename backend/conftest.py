"""
Root conftest.py for all backend tests.

This file makes fixtures available to all test files across all apps.
"""
import pytest


# ============================================================================
# AUTO-USE FIXTURES (Run automatically for every test)
# ============================================================================

@pytest.fixture(autouse=True)
def isolate_order_events(broadcaster):
    """
    Route every order event into a recording double.

    Tests that need the real channel layer build their own
    ``ChannelLayerBroadcaster``.
    """
    yield broadcaster
    broadcaster.reset()


# Import all fixtures from fixtures.py
from restaurant_backend.tests.fixtures import *  # noqa: F401,F403,E402
