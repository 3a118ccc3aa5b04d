"""Authorized network reconciliation.

Keeps exactly one allow-list entry per display name pointing at the
current public IP. The remote list is always replaced as a whole.
"""

import logging
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthorizedNetwork:
    """A CIDR block allowed to reach the cluster control plane."""

    cidr_block: str
    display_name: str


class ClusterApi(Protocol):
    """Protocol for the remote authorized network configuration."""

    async def get_authorized_networks(self) -> list[AuthorizedNetwork]:
        """Return the current entries in order.

        Raises:
            ClusterApiError: If the cluster cannot be read.
        """
        ...

    async def set_authorized_networks(self, networks: list[AuthorizedNetwork]) -> None:
        """Replace the whole list and enable authorized networks.

        Raises:
            ClusterApiError: If the update is rejected.
        """
        ...


def host_cidr(ip: str) -> str:
    """Single-host CIDR for an address."""
    return f"{ip}/32"


def plan_authorized_networks(
    existing: list[AuthorizedNetwork],
    ip: str,
    display_name: str,
) -> list[AuthorizedNetwork] | None:
    """Compute the replacement list for a new IP.

    Entries named display_name are dropped and a /32 entry for ip is
    appended. If any existing entry already has that exact CIDR, whatever
    its name, nothing needs to change and None is returned.

    Args:
        existing: Current entries in remote order.
        ip: New public IP.
        display_name: Name of the entry this agent owns.

    Returns:
        New list to write, or None when no write is needed.
    """
    candidate = AuthorizedNetwork(cidr_block=host_cidr(ip), display_name=display_name)

    kept = []
    for network in existing:
        if network.display_name != candidate.display_name:
            kept.append(network)
        if network.cidr_block == candidate.cidr_block:
            return None

    kept.append(candidate)
    return kept


class AllowListReconciler:
    """Replaces this agent's authorized network entry on IP change."""

    def __init__(self, cluster_api: ClusterApi):
        """Initialize reconciler.

        Args:
            cluster_api: Remote configuration to read and replace.
        """
        self._api = cluster_api

    async def reconcile(self, ip: str, display_name: str) -> bool:
        """Point the entry named display_name at ip.

        Args:
            ip: New public IP, embedded as <ip>/32.
            display_name: Name of the entry this agent owns.

        Returns:
            True if the remote list was written, False if the CIDR was
            already present.

        Raises:
            ValueError: If ip or display_name is empty.
            ClusterApiError: If fetching or updating fails.
        """
        if not ip:
            raise ValueError("ip must not be empty")
        if not display_name:
            raise ValueError("display_name must not be empty")

        existing = await self._api.get_authorized_networks()

        updated = plan_authorized_networks(existing, ip, display_name)
        if updated is None:
            logger.info(f"{host_cidr(ip)} already authorized, no update needed")
            return False

        await self._api.set_authorized_networks(updated)
        logger.info("IP successfully updated in the gke cluster")
        return True
