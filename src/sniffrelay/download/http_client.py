"""
HTTP client wiring using aiohttp.

The relay treats aiohttp as an external collaborator: this module only
turns an explicit HttpClientConfig into a session and a request. Nothing
here keeps process-wide defaults.
"""

from dataclasses import dataclass, field

import aiohttp

DEFAULT_CHUNK_SIZE = 64 * 1024


@dataclass
class HttpClientConfig:
    """
    Per-call configuration for the HTTP collaborator.

    Attributes:
        timeout_total: Total time for the entire request in seconds
        timeout_connect: Time to acquire a connection in seconds
        timeout_sock_read: Max time between reads; stops stalled transfers
        timeout_sock_connect: Socket connection timeout in seconds
        chunk_size: Read size for body chunks (also the peek size)
        allow_redirects: Follow redirects
        max_redirects: Redirect limit when following
        verify_ssl: Verify TLS certificates (sessions created by the relay only)
        max_connections: Total connection pool size
        max_connections_per_host: Per-host connection limit
        max_pending_events: Capacity of the relay event channel; the relay
            stops reading the response while the channel is full
        headers: Extra request headers
    """

    timeout_total: float = 300.0
    timeout_connect: float = 30.0
    timeout_sock_read: float = 60.0
    timeout_sock_connect: float = 30.0
    chunk_size: int = DEFAULT_CHUNK_SIZE
    allow_redirects: bool = True
    max_redirects: int = 10
    verify_ssl: bool = True
    max_connections: int = 100
    max_connections_per_host: int = 10
    max_pending_events: int = 16
    headers: dict[str, str] = field(default_factory=dict)

    def client_timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(
            total=self.timeout_total,
            connect=self.timeout_connect,
            sock_read=self.timeout_sock_read,
            sock_connect=self.timeout_sock_connect,
        )


def create_session(config: HttpClientConfig | None = None) -> aiohttp.ClientSession:
    """
    Create aiohttp ClientSession with connection pooling and timeouts.

    Caller is responsible for closing the session:

        async with create_session(config) as session:
            stream = transfer(url, session=session)
    """
    config = config or HttpClientConfig()
    connector = aiohttp.TCPConnector(
        limit=config.max_connections,
        limit_per_host=config.max_connections_per_host,
        ssl=config.verify_ssl,
        ttl_dns_cache=300,
        enable_cleanup_closed=True,
    )
    return aiohttp.ClientSession(connector=connector, timeout=config.client_timeout())


def open_response(
    session: aiohttp.ClientSession,
    url: str,
    config: HttpClientConfig,
):
    """
    Issue a GET request.

    Returns aiohttp's request context manager; entering it yields the
    response once headers have arrived, exiting it releases the connection.
    """
    return session.get(
        url,
        timeout=config.client_timeout(),
        allow_redirects=config.allow_redirects,
        max_redirects=config.max_redirects,
        headers=config.headers or None,
    )


__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "HttpClientConfig",
    "create_session",
    "open_response",
]
