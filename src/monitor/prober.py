"""HTTP prober — one GET per target, failures captured as a sentinel status."""

from __future__ import annotations

import logging
import time

import httpx

from .models import FAILURE_STATUS, ProbeOutcome, Target

logger = logging.getLogger(__name__)


class Prober:
    """Probes targets over a shared async httpx client.

    ``probe`` never raises: timeouts, DNS failures, refused connections and
    TLS errors become ``FAILURE_STATUS`` with the error message attached.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    async def probe(self, target: Target) -> ProbeOutcome:
        t0 = time.perf_counter()
        try:
            resp = await self._client.get(target.url)
            latency = (time.perf_counter() - t0) * 1000
            return ProbeOutcome(
                target_alias=target.alias,
                status=resp.status_code,
                latency_ms=round(latency, 1),
            )
        except httpx.TimeoutException:
            message = f"Timed out after {self.timeout:g}s"
        except httpx.ConnectError as e:
            message = f"Connection error: {e}"
        except httpx.HTTPError as e:
            message = f"HTTP error: {type(e).__name__}: {e}"
        except Exception as e:
            logger.exception("Unexpected probe error for %s", target.alias)
            message = f"Error: {type(e).__name__}: {e}"

        latency = (time.perf_counter() - t0) * 1000
        logger.debug("Probe %s failed: %s", target.alias, message)
        return ProbeOutcome(
            target_alias=target.alias,
            status=FAILURE_STATUS,
            latency_ms=round(latency, 1),
            error=message,
        )

    async def close(self) -> None:
        await self._client.aclose()
