"""Executor.

Performs the provider HTTP call with a hard timeout and classifies the
outcome: no response → NetworkError, non-2xx → ProviderError, 2xx → body.
"""

import asyncio
from typing import Any

import httpx

from relay_obs.logging import get_logger
from relay_tools.exceptions import NetworkError, ProviderError
from relay_tools.mapping import PreparedRequest

logger = get_logger(__name__)


def parse_body(response: httpx.Response) -> Any:
    """Parse a response body: JSON if possible, else text, None if empty."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class Executor:
    """Issues PreparedRequests over a shared httpx client."""

    def __init__(self, http_client: httpx.AsyncClient, timeout_seconds: float = 30.0):
        """Initialize executor.

        Args:
            http_client: Shared async HTTP client (owned by the caller)
            timeout_seconds: Upper bound for the whole call
        """
        self.http_client = http_client
        self.timeout_seconds = timeout_seconds

    async def execute(self, request: PreparedRequest) -> Any:
        """Execute the request.

        Cancelling the awaiting task aborts the in-flight HTTP call.

        Returns:
            Parsed 2xx response body

        Raises:
            NetworkError: Transport failure or timeout
            ProviderError: Non-2xx response (status and raw body preserved)
        """
        url = request.full_url
        log = logger.bind(method=request.method.value, url=request.url)

        try:
            response = await asyncio.wait_for(
                self.http_client.request(
                    request.method.value,
                    url,
                    headers=request.headers,
                    json=request.json_body,
                    timeout=self.timeout_seconds,
                ),
                timeout=self.timeout_seconds,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            log.warning("provider_timeout", timeout_seconds=self.timeout_seconds)
            raise NetworkError(
                f"Provider did not respond within {self.timeout_seconds}s",
                details={"url": request.url, "timeout_seconds": self.timeout_seconds},
            ) from e
        except httpx.HTTPError as e:
            log.warning("provider_unreachable", error=str(e))
            raise NetworkError(
                f"Network error calling provider: {e}",
                details={"url": request.url},
            ) from e

        if not response.is_success:
            log.warning("provider_error", status_code=response.status_code)
            raise ProviderError(
                f"External API Error ({response.status_code})",
                status_code=response.status_code,
                body=response.text,
                details={
                    "status_code": response.status_code,
                    "body": response.text,
                    "parsed": parse_body(response),
                },
            )

        log.debug("provider_responded", status_code=response.status_code)
        return parse_body(response)
