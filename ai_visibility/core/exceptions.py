"""Error taxonomy shared by collectors, services and the HTTP layer."""


class VisibilityError(Exception):
    """Base class for all application errors."""


class ConfigurationError(VisibilityError):
    """A required setting (usually a provider credential) is missing."""


class NotFoundError(VisibilityError):
    pass


class UploadError(VisibilityError):
    """An uploaded query file could not be parsed."""


class ProviderError(VisibilityError):
    """Non-2xx answer from an AI platform.

    ``kind`` classifies the status for user-facing messaging:
    ``invalid_credential`` | ``model_not_found`` | ``rate_limit`` | ``quota`` | ``unknown``.
    None of these are retried automatically.
    """

    kind_by_status = {
        401: "invalid_credential",
        404: "model_not_found",
        429: "rate_limit",
    }

    def __init__(self, platform: str, message: str, status: int = 0, kind: str | None = None):
        super().__init__(f"{platform} API error ({status}): {message}" if status else f"{platform}: {message}")
        self.platform = platform
        self.status = status
        self.message = message
        self.kind = kind or self.kind_by_status.get(status, "unknown")

    @property
    def recoverable(self) -> bool:
        """Rate-limit and quota failures clear up after a delay; the rest need user action."""
        return self.kind in ("rate_limit", "quota")


class TransportError(ProviderError):
    """Network or cross-origin failure before any HTTP status was received."""

    def __init__(self, platform: str, message: str):
        super().__init__(platform, message, status=0, kind="transport")


class ParseError(ProviderError):
    """The platform answered with a body that is not valid JSON."""

    def __init__(self, platform: str, message: str, status: int = 0):
        super().__init__(platform, message, status=status, kind="parse")


class ProviderTimeoutError(ProviderError):
    """The request exceeded its time budget (client timeout or relay 504)."""

    def __init__(self, platform: str, message: str, status: int = 504):
        super().__init__(platform, message, status=status, kind="timeout")
