"""HTTP probe backed by httpx."""

from __future__ import annotations

import logging

import httpx

from sysmgmt.interfaces.http_probe import (
    HttpProbe,
    ProbeHttpError,
    ProbeRequestError,
    ProbeResponse,
    ProbeTimeoutError,
)

logger = logging.getLogger(__name__)

USER_AGENT = "sysmgmt-healthcheck"  # pragma: no mutate
MAX_BODY_BYTES = 1024 * 1024


class HttpxProbe(HttpProbe):
    """Issue GET requests through a shared `httpx.Client`.

    Args:
        client: Client to use. When omitted one is created (and owned) here;
            tests pass a client built on `httpx.MockTransport`.
    """

    def __init__(self, client: httpx.Client | None = None) -> None:
        self._owns_client = client is None
        self._client = client or httpx.Client(
            headers={"User-Agent": USER_AGENT}, follow_redirects=True
        )

    def get(self, url: str, timeout_s: float) -> ProbeResponse:
        try:
            with self._client.stream("GET", url, timeout=timeout_s) as response:
                content = _read_capped(response, MAX_BODY_BYTES)
        except httpx.TimeoutException as e:
            raise ProbeTimeoutError(f"{type(e).__name__}: {e}") from e
        except (httpx.RequestError, httpx.InvalidURL) as e:
            raise ProbeRequestError(f"{type(e).__name__}: {e}") from e

        body = content.decode(response.encoding or "utf-8", errors="replace")
        if not response.is_success:
            logger.debug("GET %s -> %s", url, response.status_code)
            raise ProbeHttpError(response.status_code, response.reason_phrase, body)
        return ProbeResponse(
            status_code=response.status_code, body=body, reason=response.reason_phrase
        )

    def close(self) -> None:
        """Close the underlying client if this probe created it."""
        if self._owns_client:
            self._client.close()


def _read_capped(response: httpx.Response, limit: int) -> bytes:
    """Read at most `limit` bytes of a streamed body; the rest is never fetched."""
    chunks: list[bytes] = []
    size = 0
    for chunk in response.iter_bytes():
        chunks.append(chunk)
        size += len(chunk)
        if size >= limit:
            break
    return b"".join(chunks)[:limit]
