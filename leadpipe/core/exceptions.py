"""Domain exceptions raised by services and translated to HTTP errors in routes."""


class LeadPipeError(Exception):
    """Base class for domain errors."""


class NotFoundError(LeadPipeError):
    """Entity does not exist within the caller's tenant scope."""


class LeadNotFoundError(NotFoundError):
    """Lead does not exist within the caller's tenant scope."""


class TenantNotFoundError(NotFoundError):
    """Tenant does not exist."""


class ValidationError(LeadPipeError):
    """Submitted data failed validation; nothing was written."""


class InvalidStageError(ValidationError):
    """Stage is not one of the tenant's configured pipeline stages."""

    def __init__(self, stage: str, allowed: list[str]):
        self.stage = stage
        self.allowed = allowed
        super().__init__(f"Invalid stage '{stage}'. Allowed: {', '.join(allowed)}")


class MissingContactError(ValidationError):
    """Submission carries neither an email nor a phone number."""


class ConflictError(LeadPipeError):
    """Unique value (tenant slug, user email) is already taken."""


class PermissionDeniedError(LeadPipeError):
    """Caller's role does not allow the operation."""


class UserNotFoundError(NotFoundError):
    """User does not exist within the caller's scope."""


class ApiKeyNotFoundError(NotFoundError):
    """API key does not exist for the tenant."""


class AuthenticationError(LeadPipeError):
    """Credentials or refresh token were rejected."""
