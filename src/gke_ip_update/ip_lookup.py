"""Public IP address discovery.

Asks an IP echo service which address our requests come from. The
service answers with the bare address as the whole response body.
"""

import logging
from typing import Optional, Protocol

import aiohttp

from gke_ip_update.config import DEFAULT_LOOKUP_URL
from gke_ip_update.errors import IpLookupError

logger = logging.getLogger(__name__)


class IpLookup(Protocol):
    """Protocol for public IP discovery."""

    async def get_ip(self) -> str:
        """Get the current public IP address.

        Raises:
            IpLookupError: If the IP cannot be determined.
        """
        ...


class HttpIpLookup:
    """Discovers the public IP via an HTTP echo endpoint.

    Example:
        async with HttpIpLookup() as lookup:
            ip = await lookup.get_ip()  # "203.0.113.50"
    """

    DEFAULT_TIMEOUT = 10.0

    def __init__(
        self,
        url: str = DEFAULT_LOOKUP_URL,
        timeout: float = DEFAULT_TIMEOUT,
        http_session: Optional[aiohttp.ClientSession] = None,
    ):
        """Initialize lookup.

        Args:
            url: IP echo endpoint.
            timeout: Total request timeout in seconds.
            http_session: Optional aiohttp session (for testing).
        """
        self._url = url
        self._timeout = timeout
        self._session = http_session
        self._owns_session = http_session is None

    async def __aenter__(self):
        """Enter async context, creating session if needed."""
        if self._session is None:
            self._session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, *args):
        """Exit async context, closing owned session."""
        await self.close()

    @property
    def url(self) -> str:
        """The IP echo endpoint."""
        return self._url

    async def get_ip(self) -> str:
        """Fetch the public IP.

        Returns:
            Response body with the trailing newline trimmed.

        Raises:
            IpLookupError: On network failure, non-2xx status, undecodable
                or empty body.
        """
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True

        try:
            async with self._session.get(
                self._url,
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            ) as resp:
                body = await resp.text()
                if not 200 <= resp.status < 300:
                    raise IpLookupError(
                        f"IP lookup returned {resp.status}: {body[:100]}"
                    )
        except IpLookupError:
            raise
        except (aiohttp.ClientError, TimeoutError, UnicodeDecodeError) as e:
            raise IpLookupError(f"IP lookup via {self._url} failed: {e}")

        ip = body.rstrip("\n").strip()
        if not ip:
            raise IpLookupError(f"IP lookup via {self._url} returned an empty body")

        logger.debug(f"Public IP: {ip}")
        return ip

    async def close(self) -> None:
        """Close the HTTP session if owned."""
        if self._owns_session and self._session:
            await self._session.close()
            self._session = None
