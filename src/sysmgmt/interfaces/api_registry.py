"""Registry of monitored external APIs."""

import abc
from collections.abc import Sequence

from sysmgmt.domain.models import ExternalApi


class ApiRegistryError(Exception):
    """Base class for API registry errors."""


class DuplicateApiError(ApiRegistryError):
    """An API with the same api_id is already registered."""

    def __init__(self, api_id: str) -> None:
        super().__init__(f"API '{api_id}' is already registered")
        self.api_id = api_id


class RegistryUnavailableError(ApiRegistryError):
    """Operational/connection errors; callers may retry."""


class ExternalApiRepository(abc.ABC):
    """Contract for storing `ExternalApi` definitions."""

    @abc.abstractmethod
    def add(self, api: ExternalApi) -> None:
        """Register a new API.

        Raises:
            DuplicateApiError: If `api.api_id` is already registered.
        """

    @abc.abstractmethod
    def save(self, api: ExternalApi) -> ExternalApi:
        """Insert or update an API and return the stored version.

        The stored version carries a fresh `updated_at` when it replaced an
        existing record.
        """

    @abc.abstractmethod
    def get(self, api_id: str) -> ExternalApi | None:
        """Return the API with `api_id`, or None."""

    @abc.abstractmethod
    def list_all(self) -> Sequence[ExternalApi]:
        """Return every registered API ordered by api_id."""

    @abc.abstractmethod
    def list_effective(self) -> Sequence[ExternalApi]:
        """Return the APIs whose `effective` flag is set, ordered by api_id."""
