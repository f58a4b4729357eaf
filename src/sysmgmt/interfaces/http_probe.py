"""HTTP probe used to reach external APIs."""

import abc
from dataclasses import dataclass

# pylint: disable=too-few-public-methods


@dataclass(frozen=True)
class ProbeResponse:
    """A successful (2xx) answer from an API."""

    status_code: int
    body: str
    reason: str = "OK"


class ProbeError(Exception):
    """Base class for probe failures."""


class ProbeHttpError(ProbeError):
    """The API answered with a non-2xx status."""

    def __init__(self, status_code: int, reason: str = "", body: str | None = None) -> None:
        super().__init__(f"HTTP {status_code} {reason}".rstrip())
        self.status_code = status_code
        self.reason = reason
        self.body = body


class ProbeRequestError(ProbeError):
    """The request did not produce an answer (DNS, refused connection, ...)."""


class ProbeTimeoutError(ProbeRequestError):
    """The request did not complete within the allotted time."""


class HttpProbe(abc.ABC):
    """Contract for issuing a single GET against an API."""

    @abc.abstractmethod
    def get(self, url: str, timeout_s: float) -> ProbeResponse:
        """GET `url` and return the answer.

        Raises:
            ProbeHttpError: On a non-2xx status.
            ProbeTimeoutError: If the request exceeded `timeout_s`.
            ProbeRequestError: On any other failure to get an answer
                (transport errors, redirect loops, undecodable bodies,
                malformed URLs).
        """

    def close(self) -> None:
        """Release connections held by the probe. The default does nothing."""
