"""
Shared httpx client construction and transport-error classification.
"""
import httpx

TIMEOUT = "timeout"
REFUSED = "refused"
OTHER = "other"


def new_http_client(conn_timeout: int, read_timeout: int, transport=None) -> httpx.AsyncClient:
    """
    Pooled async client for one backend.

    A single backend host is hit, so total and keep-alive limits are the same.
    """
    limits = httpx.Limits(
        max_connections=100,
        max_keepalive_connections=100,
        keepalive_expiry=90.0
    )

    timeout = httpx.Timeout(float(read_timeout), connect=float(conn_timeout))

    return httpx.AsyncClient(timeout=timeout, limits=limits, transport=transport)


def classify_transport_error(exc: Exception) -> str:
    """Map an httpx transport exception to timeout / refused / other."""
    if isinstance(exc, httpx.TimeoutException):
        return TIMEOUT
    if isinstance(exc, httpx.ConnectError) and "refused" in str(exc).lower():
        return REFUSED
    return OTHER
