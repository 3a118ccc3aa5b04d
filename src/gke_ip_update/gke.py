"""GKE master authorized networks via the Cluster Manager API."""

import inspect
import logging
import os
from pathlib import Path
from typing import Any, Callable, Optional

import google.auth
from google.api_core import exceptions as api_exceptions
from google.auth import exceptions as auth_exceptions
from google.auth.credentials import Credentials
from google.cloud import container_v1

from gke_ip_update.errors import ClusterApiError, CredentialsError
from gke_ip_update.reconciler import AuthorizedNetwork

logger = logging.getLogger(__name__)

CREDENTIALS_ENV = "GOOGLE_APPLICATION_CREDENTIALS"
CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"


def load_credentials(service_account: str) -> Credentials:
    """Resolve credentials from a service account key file.

    The path is exported as GOOGLE_APPLICATION_CREDENTIALS and then picked
    up by google-auth's default credential discovery.

    Args:
        service_account: Path to the key file.

    Returns:
        Credentials scoped for cloud-platform.

    Raises:
        CredentialsError: If the file is missing or unusable.
    """
    path = Path(service_account).expanduser()
    if not path.is_file():
        raise CredentialsError(f"Service account file not found: {path}")

    os.environ[CREDENTIALS_ENV] = str(path)
    logger.info(f"{CREDENTIALS_ENV} set")

    try:
        credentials, _project = google.auth.default(scopes=[CLOUD_PLATFORM_SCOPE])
    except auth_exceptions.GoogleAuthError as e:
        raise CredentialsError(f"Unable to load credentials from {path}: {e}")

    return credentials


def cluster_resource_name(project: str, zone: str, cluster: str) -> str:
    """Resource name for a cluster addressed by (project, zone, cluster)."""
    return f"projects/{project}/locations/{zone}/clusters/{cluster}"


class GkeClusterApi:
    """Reads and replaces a cluster's master authorized networks.

    The Cluster Manager client is created lazily, inside the running event
    loop, on first use.
    """

    def __init__(
        self,
        project: str,
        zone: str,
        cluster: str,
        credentials: Optional[Credentials] = None,
        client_factory: Optional[Callable[[], Any]] = None,
    ):
        """Initialize cluster API.

        Args:
            project: Project ID.
            zone: Zone (or region) where the master lives.
            cluster: Cluster ID.
            credentials: Credentials from load_credentials().
            client_factory: Factory returning a ClusterManagerAsyncClient (for testing).
        """
        self._name = cluster_resource_name(project, zone, cluster)
        self._credentials = credentials
        self._client_factory = client_factory or self._default_client_factory
        self._client: Any = None

    def _default_client_factory(self) -> container_v1.ClusterManagerAsyncClient:
        """Create default Cluster Manager client."""
        return container_v1.ClusterManagerAsyncClient(credentials=self._credentials)

    @property
    def name(self) -> str:
        """Cluster resource name."""
        return self._name

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = self._client_factory()
        return self._client

    async def get_authorized_networks(self) -> list[AuthorizedNetwork]:
        """Fetch the cluster's authorized networks.

        Returns:
            Entries in remote order, empty if none are configured.

        Raises:
            ClusterApiError: If the cluster cannot be read.
        """
        try:
            cluster = await self._get_client().get_cluster(name=self._name)
        except api_exceptions.GoogleAPIError as e:
            raise ClusterApiError(f"Unable to get cluster {self._name}: {e}")

        config = cluster.master_authorized_networks_config
        if not config:
            return []

        return [
            AuthorizedNetwork(cidr_block=block.cidr_block, display_name=block.display_name)
            for block in config.cidr_blocks
        ]

    async def set_authorized_networks(self, networks: list[AuthorizedNetwork]) -> None:
        """Replace the authorized networks and enable them.

        Raises:
            ClusterApiError: If the update is rejected.
        """
        update = container_v1.ClusterUpdate(
            desired_master_authorized_networks_config=container_v1.MasterAuthorizedNetworksConfig(
                enabled=True,
                cidr_blocks=[
                    container_v1.MasterAuthorizedNetworksConfig.CidrBlock(
                        display_name=network.display_name,
                        cidr_block=network.cidr_block,
                    )
                    for network in networks
                ],
            )
        )

        try:
            operation = await self._get_client().update_cluster(
                name=self._name, update=update
            )
        except api_exceptions.GoogleAPIError as e:
            raise ClusterApiError(f"Unable to update cluster {self._name}: {e}")

        logger.debug(f"Update operation started: {getattr(operation, 'name', operation)}")

    async def close(self) -> None:
        """Close the client's channel if one was created."""
        if self._client is None:
            return

        # grpc.aio transports return a coroutine from close()
        result = self._client.transport.close()
        if inspect.isawaitable(result):
            await result
        self._client = None
