"""
HTTP Utilities

Shared construction of the httpx client used by every updater and
factory, plus consistent status handling.
"""

import logging
import time
from typing import Iterable, Optional

import httpx

from vulnfeed.core.config import settings
from vulnfeed.core.constants import FEED_TIMEOUTS
from vulnfeed.core.exceptions import FetchError
from vulnfeed.core.metrics import (
    external_api_duration_seconds,
    external_api_errors_total,
    external_api_requests_total,
)

logger = logging.getLogger(__name__)


def _service_name(request: httpx.Request) -> str:
    return request.url.host or "unknown"


async def _on_request(request: httpx.Request) -> None:
    request.extensions["vulnfeed_start"] = time.time()
    external_api_requests_total.labels(service=_service_name(request)).inc()


async def _on_response(response: httpx.Response) -> None:
    request = response.request
    service = _service_name(request)
    start_time = request.extensions.get("vulnfeed_start")
    if start_time is not None:
        external_api_duration_seconds.labels(service=service).observe(time.time() - start_time)
    if response.status_code >= 400:
        external_api_errors_total.labels(service=service).inc()


def create_client(
    timeout: Optional[float] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    **kwargs,
) -> httpx.AsyncClient:
    """
    Build the shared AsyncClient.

    A single client is shared by all updaters so they benefit from one
    connection pool. Metrics are recorded through event hooks so callers
    can use the plain httpx API.

    Args:
        timeout: Request timeout in seconds, defaults to settings
        transport: Optional transport override (used by tests)
    """
    return httpx.AsyncClient(
        timeout=timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS,
        headers={"User-Agent": settings.HTTP_USER_AGENT},
        follow_redirects=True,
        transport=transport,
        event_hooks={"request": [_on_request], "response": [_on_response]},
        **kwargs,
    )


def check_response(
    response: httpx.Response,
    service_name: str,
    expected: Iterable[int] = (200,),
) -> None:
    """
    Raise FetchError unless the response status is one of ``expected``.

    Args:
        response: The received response
        service_name: Name of the feed (for logging)
        expected: Acceptable status codes
    """
    if response.status_code in expected:
        return
    msg = f"{service_name}: unexpected response {response.status_code} from {response.request.url}"
    logger.warning(msg)
    raise FetchError(msg, status_code=response.status_code)


async def request_or_raise(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    service_name: str,
    **kwargs,
) -> httpx.Response:
    """Issue a request and translate transport failures into FetchError."""
    kwargs.setdefault("timeout", FEED_TIMEOUTS.get(service_name, FEED_TIMEOUTS["default"]))
    try:
        return await client.request(method, url, **kwargs)
    except httpx.TimeoutException as e:
        external_api_errors_total.labels(service=service_name).inc()
        msg = f"Timeout requesting {url} ({service_name})"
        logger.warning(msg)
        raise FetchError(msg) from e
    except httpx.HTTPError as e:
        external_api_errors_total.labels(service=service_name).inc()
        msg = f"Error requesting {url} ({service_name}): {e}"
        logger.warning(msg)
        raise FetchError(msg) from e
