"""
Application error taxonomy.

Every error carries an ``error_code`` and an HTTP ``status`` so routers can
turn it into the normalized JSON envelope from ``backend.utils.responses``.
"""

from typing import Dict, Optional


class AppError(Exception):
    """Base class for errors surfaced to API clients"""

    error_code = "app_error"
    status = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(AppError):
    """Malformed or missing form input, with per-field messages"""

    error_code = "validation_error"
    status = 400

    def __init__(self, field_errors: Dict[str, str], message: Optional[str] = None):
        self.field_errors = field_errors
        super().__init__(message or "; ".join(field_errors.values()) or "Invalid input")


class ConfirmationMismatchError(ValidationError):
    error_code = "confirmation_mismatch"

    def __init__(self):
        super().__init__({"confirm_password": "Passwords do not match"})


class AuthError(AppError):
    """The identity collaborator rejected the credentials or could not be reached"""

    error_code = "auth_error"
    status = 401


class FeatureLockedError(AppError):
    """Raised when a gated feature is requested by a non-premium session"""

    error_code = "feature_locked"
    status = 403

    def __init__(self, feature: str):
        self.feature = feature
        super().__init__(f"Upgrade to Premium to unlock {feature}")


class NotFoundError(AppError):
    error_code = "not_found"
    status = 404


class ProviderError(AppError):
    """A generative-text or payment collaborator failed (timeout, quota, bad response)"""

    error_code = "provider_error"
    status = 502


class OperationSuperseded(AppError):
    """A newer operation of the same kind replaced this one before it finished"""

    error_code = "operation_superseded"
    status = 409

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"A newer {kind} request replaced this one")


class ConfigurationError(AppError):
    """Required collaborator credentials are missing at startup"""

    error_code = "configuration_error"
    status = 500
