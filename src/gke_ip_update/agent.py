"""Agent orchestration - ties lookup, state, reconciler and watcher together."""

import asyncio
import logging
import signal
from typing import Optional

from gke_ip_update.config import Config
from gke_ip_update.errors import GkeIpUpdateError
from gke_ip_update.gke import GkeClusterApi, load_credentials
from gke_ip_update.ip_lookup import HttpIpLookup, IpLookup
from gke_ip_update.reconciler import AllowListReconciler, ClusterApi
from gke_ip_update.storage import IpStateStore
from gke_ip_update.watcher import IpWatcher

logger = logging.getLogger(__name__)


class StartupError(GkeIpUpdateError):
    """Error during agent startup."""

    pass


class Agent:
    """Keeps the cluster allow-list pointed at this host's public IP.

    Startup is strict: state directory, credentials, the first lookup and
    the first reconciliation must all succeed. After that the watcher owns
    the loop and only a lookup failure or a stop request ends it.
    """

    def __init__(
        self,
        config: Config,
        lookup: Optional[IpLookup] = None,
        cluster_api: Optional[ClusterApi] = None,
        store: Optional[IpStateStore] = None,
    ):
        """Initialize agent.

        Args:
            config: Validated configuration.
            lookup: IP lookup (created from config if None).
            cluster_api: Cluster API (created from config if None).
            store: IP state store (created from config if None).
        """
        self._config = config
        self._lookup = lookup
        self._owns_lookup = lookup is None
        self._cluster_api = cluster_api
        self._owns_cluster_api = cluster_api is None
        self._store = store or IpStateStore(config.state_path)
        self._watcher: Optional[IpWatcher] = None

    @property
    def store(self) -> IpStateStore:
        """Persisted IP state."""
        return self._store

    @property
    def watcher(self) -> Optional[IpWatcher]:
        """The watcher, once started."""
        return self._watcher

    async def _setup(self) -> IpWatcher:
        """Build components, creating whatever was not injected."""
        self._store.ensure_directory()

        if self._cluster_api is None:
            cluster = self._config.cluster
            credentials = load_credentials(cluster.service_account)
            self._cluster_api = GkeClusterApi(
                project=cluster.project,
                zone=cluster.zone,
                cluster=cluster.cluster,
                credentials=credentials,
            )

        if self._lookup is None:
            self._lookup = HttpIpLookup(
                url=self._config.watcher.lookup_url,
                timeout=self._config.watcher.lookup_timeout,
            )

        return IpWatcher(
            lookup=self._lookup,
            store=self._store,
            reconciler=AllowListReconciler(self._cluster_api),
            display_name=self._config.cluster.network_name,
            check_interval=self._config.watcher.check_interval,
            persist_on_failure=self._config.watcher.persist_on_failure,
        )

    async def start(self) -> None:
        """Run the startup sequence and launch the watcher.

        Raises:
            StartupError: If any startup step fails.
        """
        try:
            watcher = await self._setup()
            ip = await self._lookup.get_ip()
            self._store.save(ip)
            await AllowListReconciler(self._cluster_api).reconcile(
                ip, self._config.cluster.network_name
            )
        except GkeIpUpdateError as e:
            await self._close()
            raise StartupError(str(e)) from e

        logger.info(f"Startup complete, public IP is {ip}")
        self._watcher = watcher
        self._watcher.start()

    async def check_once(self) -> bool:
        """Run a single check outside the polling loop.

        Returns:
            True if the IP changed.

        Raises:
            GkeIpUpdateError: If setup or the lookup fails, or if the IP
                changed and the cluster update failed.
        """
        try:
            watcher = await self._setup()
            changed = await watcher.check_and_reconcile()
            if watcher.update_error is not None:
                raise watcher.update_error
            return changed
        finally:
            await self._close()

    async def run_forever(self) -> bool:
        """Run until a stop is requested or the watcher ends on its own.

        Returns:
            True on a requested stop, False if the watcher ended because the
            public IP could not be looked up.
        """
        if self._watcher is None:
            await self.start()

        self._setup_signals()
        try:
            await self._watcher.wait()
        finally:
            await self._shutdown()

        return self._watcher.error is None

    async def stop(self) -> None:
        """Stop the agent gracefully."""
        if self._watcher:
            await self._watcher.stop()

    def _setup_signals(self) -> None:
        """Set up signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()

        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(
                    sig,
                    lambda: asyncio.create_task(self.stop()),
                )
            except (NotImplementedError, RuntimeError):
                logger.debug(f"Cannot install handler for {sig.name}")

    async def _shutdown(self) -> None:
        """Perform graceful shutdown."""
        logger.info("Shutting down...")
        await self._close()
        logger.info("Shutdown complete")

    async def _close(self) -> None:
        if self._owns_lookup and isinstance(self._lookup, HttpIpLookup):
            await self._lookup.close()
        if self._owns_cluster_api and isinstance(self._cluster_api, GkeClusterApi):
            await self._cluster_api.close()
