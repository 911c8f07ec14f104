import logging
import time
from typing import Optional

import httpx

from contracts.observation import ErrorKind, ObservationOutcome
from contracts.probe import ProbeDefinition

logger = logging.getLogger(__name__)


def build_url(host: str, probe: ProbeDefinition) -> httpx.URL:
    """
    Join host and endpoint, appending the probe's queries to any query already in the path.

    Duplicate keys are kept side by side rather than overwritten.
    """
    url = httpx.URL(f"{host}{probe.endpoint}")
    params = list(url.params.multi_items())
    params.extend(probe.queries.items())
    return url.copy_with(params=httpx.QueryParams(params))


class RequestExecutor:
    """
    Sends one probe request and reports how long it took and how it ended.
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        """
        Args:
            client (Optional[httpx.AsyncClient]): Client to send requests with. When
                omitted the executor creates one with the transport's default timeout
                and owns it.
        """
        self._owns_client = client is None
        self.client = client if client is not None else httpx.AsyncClient()

    async def execute(self, host: str, probe: ProbeDefinition) -> ObservationOutcome:
        """
        Execute a probe against a host.

        Transport failures are returned as an outcome without a status code rather
        than raised. Any HTTP status, 4xx and 5xx included, is a normal outcome.

        Args:
            host (str): Base URL of the target service.
            probe (ProbeDefinition): The request to send.

        Returns:
            ObservationOutcome: Status code (or error) and latency in whole milliseconds.
        """
        logger.info(f"Observing {host}{probe.endpoint}")
        start = time.perf_counter()
        try:
            request = self.client.build_request(
                probe.method,
                build_url(host, probe),
                headers={"Content-Type": "application/json"},
                content=probe.body,
            )
            response = await self.client.send(request, stream=True)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            latency = int((time.perf_counter() - start) * 1000)
            logger.error(
                f"Error running request {probe.endpoint} against {host}: {e!r}"
            )
            return ObservationOutcome(
                endpoint=probe.endpoint,
                host=host,
                latency_ms=latency,
                error=ErrorKind.TRANSPORT_ERROR,
                error_message=str(e) or type(e).__name__,
            )
        latency = int((time.perf_counter() - start) * 1000)
        try:
            await response.aread()
        except httpx.HTTPError as e:
            # Headers already arrived, so the status is still a valid observation
            logger.warning(f"Failed to drain response body from {probe.endpoint}: {e!r}")
        finally:
            await response.aclose()

        logger.info(f"Status code: {response.status_code}")
        logger.info(f"Latency: {latency}")
        return ObservationOutcome(
            endpoint=probe.endpoint,
            host=host,
            status_code=response.status_code,
            latency_ms=latency,
        )

    async def aclose(self):
        if self._owns_client:
            await self.client.aclose()
