from __future__ import annotations


class HireConsoleError(Exception):
    """Base error for HireConsole."""

    code = "INTERNAL_ERROR"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.__doc__ or self.code)
        self.message = message or self.__doc__ or self.code


class Unauthenticated(HireConsoleError):
    """No valid session for an operation that requires one."""

    code = "AUTH_UNAUTHENTICATED"


class InvalidCredentials(HireConsoleError):
    """The auth provider rejected the supplied credentials."""

    code = "AUTH_INVALID_CREDENTIALS"


class Forbidden(HireConsoleError):
    """Authenticated but lacking the required capability."""

    code = "AUTH_FORBIDDEN"


class ProfileMissing(HireConsoleError):
    """Identity is valid but no profile record is provisioned for it."""

    code = "PROFILE_MISSING"

    def __init__(self, identity_id: str, message: str | None = None) -> None:
        super().__init__(message or "Profile not found. Please contact administrator.")
        self.identity_id = identity_id


class UpdateFailed(HireConsoleError):
    """Store mutation failed after retry."""

    code = "UPDATE_FAILED"

    def __init__(self, message: str | None = None, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class StoreUnavailable(HireConsoleError):
    """Transient collaborator failure (network, timeout, pool exhaustion)."""

    code = "STORE_UNAVAILABLE"


class TenantNotFound(HireConsoleError):
    """Referenced tenant does not exist."""

    code = "TENANT_NOT_FOUND"


class UnknownPermissionKey(HireConsoleError):
    """Permission key is not part of the registry."""

    code = "UNKNOWN_PERMISSION_KEY"
