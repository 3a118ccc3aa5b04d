"""Public IP change watching.

Each tick compares the looked-up public IP with the persisted one and
reconciles the cluster allow-list when it changed.
"""

import asyncio
import logging
from typing import Optional

from gke_ip_update.errors import GkeIpUpdateError, IpLookupError
from gke_ip_update.ip_lookup import IpLookup
from gke_ip_update.reconciler import AllowListReconciler
from gke_ip_update.storage import IpStateStore

logger = logging.getLogger(__name__)


class IpWatcher:
    """Polls the public IP and keeps the allow-list entry in sync.

    The loop stops when the stop event is set or when a lookup fails.
    Reconciliation failures are logged and the loop carries on.
    """

    def __init__(
        self,
        lookup: IpLookup,
        store: IpStateStore,
        reconciler: AllowListReconciler,
        display_name: str,
        check_interval: float = 180.0,
        persist_on_failure: bool = True,
    ):
        """Initialize IP watcher.

        Args:
            lookup: Public IP lookup.
            store: Persisted IP state.
            reconciler: Allow-list reconciler.
            display_name: Name of the entry this agent owns.
            check_interval: Seconds between checks.
            persist_on_failure: Save the observed IP even when the update failed.
        """
        self._lookup = lookup
        self._store = store
        self._reconciler = reconciler
        self._display_name = display_name
        self._interval = check_interval
        self._persist_on_failure = persist_on_failure
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._error: Optional[IpLookupError] = None
        self._update_error: Optional[GkeIpUpdateError] = None

    @property
    def is_running(self) -> bool:
        """Whether the polling task is active."""
        return self._task is not None and not self._task.done()

    @property
    def error(self) -> Optional[IpLookupError]:
        """Lookup failure that ended the loop, if any."""
        return self._error

    @property
    def update_error(self) -> Optional[GkeIpUpdateError]:
        """Cluster update failure from the most recent IP change, if any."""
        return self._update_error

    async def check_and_reconcile(self) -> bool:
        """Run a single tick.

        Returns:
            True if the IP changed, False otherwise.

        Raises:
            IpLookupError: If the public IP cannot be determined.
            StorageError: If the state file cannot be read or written.
        """
        ip = await self._lookup.get_ip()
        saved_ip = self._store.load()

        if ip == saved_ip:
            logger.debug(f"IP unchanged: {ip}")
            return False

        logger.info(f"IP change detected from : {saved_ip} , to : {ip}")

        self._update_error = None
        try:
            await self._reconciler.reconcile(ip, self._display_name)
        except GkeIpUpdateError as e:
            self._update_error = e
            logger.error(f"Unable to update ip in the GKE cluster : {e}")

        if self._update_error is None or self._persist_on_failure:
            self._store.save(ip)

        return True

    async def run(self) -> None:
        """Check on a fixed interval until stopped or a lookup fails."""
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
                break
            except asyncio.TimeoutError:
                pass

            try:
                await self.check_and_reconcile()
            except IpLookupError as e:
                logger.error(f"IP lookup failed, stopping watcher: {e}")
                self._error = e
                break
            except GkeIpUpdateError as e:
                logger.error(f"IP check failed: {e}")

    def start(self) -> asyncio.Task:
        """Start the polling task.

        Returns:
            The running task.
        """
        if self.is_running:
            return self._task

        self._stop_event.clear()
        self._error = None
        self._task = asyncio.create_task(self.run())
        logger.info(f"IP watcher started (interval {self._interval}s)")
        return self._task

    async def wait(self) -> None:
        """Wait for the polling task to finish."""
        if self._task:
            await self._task

    async def stop(self) -> None:
        """Signal the loop to stop and wait for it."""
        self._stop_event.set()
        if self._task:
            await self._task
            self._task = None
        logger.info("IP watcher stopped")
