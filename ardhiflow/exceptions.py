"""Exception hierarchy for ArdhiFlow."""


class ArdhiFlowError(Exception):
    """Base exception for all ArdhiFlow errors."""


class AuthorizationError(ArdhiFlowError):
    """Raised when the current session may not perform an action."""


class UnauthorizedError(AuthorizationError):
    """Raised when no trusted session is present."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class ForbiddenError(AuthorizationError):
    """Raised when the session's organization role is not allowed."""

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message)


class MalformedClaimsError(ForbiddenError):
    """Raised when session claims lack the organization role a check needs.

    An unknown role is never granted anything, so this is a Forbidden.
    """

    def __init__(self, message: str = "Forbidden: organization role unknown") -> None:
        super().__init__(message)


class DirectoryUnavailableError(ArdhiFlowError):
    """Raised when the identity provider cannot return organization data."""


class MissingTenantContextError(ArdhiFlowError):
    """Raised when a tenant-scoped request carries no active organization."""

    def __init__(self, message: str = "Tenant context is missing in request headers.") -> None:
        super().__init__(message)


class StorageError(ArdhiFlowError):
    """Raised when key-value store operations fail."""


class ConfigError(ArdhiFlowError):
    """Raised when configuration is invalid."""
