"""Error taxonomy for the Fortify report core."""

from fortify_report.models.enums import ErrorKind, ProviderKind


class FortifyError(Exception):
    """Base exception for the Fortify report core."""

    kind: ErrorKind

    def __init__(
        self,
        message: str,
        provider: ProviderKind | None = None,
        status_code: int | None = None,
        details=None,
    ):
        self.code = self.kind.value
        self.message = message
        self.provider = provider
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class ConfigurationError(FortifyError):
    """Missing or contradictory configuration, detected before any network call."""

    kind = ErrorKind.CONFIGURATION


class AuthError(FortifyError):
    """Credential rejected, absent, or token exchange failed."""

    kind = ErrorKind.AUTH


class ResolutionError(FortifyError):
    """Application, version or filter set could not be resolved exactly."""

    kind = ErrorKind.RESOLUTION


class NetworkError(FortifyError):
    """Timeout, connect failure or unexpected HTTP status."""

    kind = ErrorKind.NETWORK


class ProtocolError(FortifyError):
    """Successful status but a body that does not match the expected shape."""

    kind = ErrorKind.PROTOCOL
