"""Short-lived cache of APIs currently considered unhealthy."""

import abc
from collections.abc import Mapping, Sequence
from typing import Any


class HealthCacheError(Exception):
    """The cache backend could not serve the request."""


class UnhealthyApiCache(abc.ABC):
    """Contract for the unhealthy-API cache.

    Entries expire on their own after their TTL; a later successful check
    removes them eagerly via `clear`.
    """

    @abc.abstractmethod
    def mark_unhealthy(self, api_id: str, snapshot: Mapping[str, Any], ttl_s: int) -> None:
        """Store `snapshot` for `api_id` for `ttl_s` seconds (replacing any entry)."""

    @abc.abstractmethod
    def clear(self, api_id: str) -> bool:
        """Remove the entry for `api_id`; return True if one was present."""

    @abc.abstractmethod
    def is_unhealthy(self, api_id: str) -> bool:
        """True if a live entry exists for `api_id`."""

    @abc.abstractmethod
    def snapshot(self, api_id: str) -> Mapping[str, Any] | None:
        """Return the live snapshot stored for `api_id`, or None."""

    @abc.abstractmethod
    def unhealthy_ids(self) -> Sequence[str]:
        """Return the api_ids with a live entry, sorted."""

    @abc.abstractmethod
    def ttl_remaining(self, api_id: str) -> float | None:
        """Seconds until the entry for `api_id` expires, or None if there is none."""
