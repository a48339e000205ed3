"""Error taxonomy for CEP lookups."""

from typing import Optional


class CepLookupError(Exception):
    """Base error for the CEP lookup service."""


class RequestMalformed(CepLookupError):
    """Raised when the request path does not carry exactly one CEP."""


class UpstreamError(CepLookupError):
    """Raised when an upstream provider call fails."""

    def __init__(self, origin: str, message: str):
        super().__init__(message)
        self.origin = origin


class UpstreamTransportError(UpstreamError):
    """DNS, connection or read failure talking to a provider."""

    def __init__(self, origin: str, cause: Exception):
        super().__init__(origin, str(cause) or type(cause).__name__)
        self.cause = cause


class UpstreamStatusError(UpstreamError):
    """Provider answered with a non-200 status."""

    def __init__(self, origin: str, status_code: int, reason: str = ""):
        status = f"{status_code} {reason}".strip()
        super().__init__(origin, f"requisição falhou: {status}")
        self.status_code = status_code


class UpstreamDecodeError(UpstreamError):
    """Provider body could not be decoded into its address shape."""

    def __init__(self, origin: str, cause: Exception):
        super().__init__(origin, f"error reading response: {cause}")
        self.cause = cause


class DeadlineExceeded(UpstreamError):
    """The race deadline elapsed before the provider answered."""

    def __init__(self, origin: str, timeout_s: Optional[float] = None):
        detail = f" ({timeout_s:g}s)" if timeout_s is not None else ""
        super().__init__(origin, f"context deadline exceeded{detail}")
        self.timeout_s = timeout_s
