"""Pytest configuration and shared fixtures."""

import pytest

from gke_ip_update.errors import ClusterApiError, IpLookupError
from gke_ip_update.reconciler import AuthorizedNetwork


@pytest.fixture(autouse=True)
def reset_logging_state():
    """Reset logging state before each test."""
    from gke_ip_update.logging import reset_logging

    reset_logging()
    yield
    reset_logging()


class FakeClusterApi:
    """In-memory authorized network configuration.

    Records every write so tests can count remote updates.
    """

    def __init__(self, networks=None):
        self.networks = list(networks or [])
        self.enabled = False
        self.writes = []
        self.get_error: Exception | None = None
        self.set_error: Exception | None = None

    async def get_authorized_networks(self):
        if self.get_error:
            raise self.get_error
        return list(self.networks)

    async def set_authorized_networks(self, networks):
        self.writes.append(list(networks))
        if self.set_error:
            raise self.set_error
        self.networks = list(networks)
        self.enabled = True


class FakeIpLookup:
    """Returns IPs from a sequence, repeating the last one."""

    def __init__(self, *results):
        self._results = list(results)
        self.calls = 0

    async def get_ip(self):
        idx = min(self.calls, len(self._results) - 1)
        self.calls += 1
        result = self._results[idx]
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def fake_api():
    """Cluster API with no entries."""
    return FakeClusterApi()


@pytest.fixture
def make_api():
    """Factory for a cluster API with the given (cidr, name) entries."""

    def _make(*entries):
        return FakeClusterApi(
            [AuthorizedNetwork(cidr_block=c, display_name=n) for c, n in entries]
        )

    return _make


@pytest.fixture
def make_lookup():
    """Factory for a lookup returning the given IPs or errors in order."""
    return FakeIpLookup


@pytest.fixture
def api_error():
    return ClusterApiError("permission denied")


@pytest.fixture
def lookup_error():
    return IpLookupError("connection refused")
