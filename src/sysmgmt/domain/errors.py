"""Domain-layer error definitions."""


class DomainError(Exception):
    """Base class for domain-layer errors."""


class InvalidExternalApiError(DomainError):
    """Raised when an external API definition violates a domain invariant."""

    def __init__(self, api_id: str, reason: str) -> None:
        super().__init__(f"Invalid external API '{api_id}': {reason}")
        self.api_id = api_id
        self.reason = reason
