"""Application error types.

Each error carries the HTTP status it maps to, so a single exception handler
in ``main.py`` can render any of them as ``{"detail": message}``.
"""


class FinanceUError(Exception):
    """Base class for application errors."""

    status_code: int = 500
    default_message: str = "Server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(FinanceUError):
    status_code = 400
    default_message = "Invalid request"


class DuplicateEmailError(FinanceUError):
    status_code = 400
    default_message = "Email already registered"


class InvalidCredentialsError(FinanceUError):
    status_code = 401
    default_message = "Invalid email or password"


class UnauthorizedError(FinanceUError):
    status_code = 401
    default_message = "Not authenticated"


class InvalidTokenError(UnauthorizedError):
    """Session token failed verification (bad signature, malformed or expired)."""

    default_message = "Invalid or expired token"


class NotFoundError(FinanceUError):
    status_code = 404
    default_message = "Not found"


class InvalidResetTokenError(FinanceUError):
    status_code = 400
    default_message = "Invalid or expired reset code"


class ResetTokenNotFoundError(InvalidResetTokenError):
    default_message = "Invalid reset code. Please check the code and try again."


class ResetTokenExpiredError(InvalidResetTokenError):
    default_message = "This reset code has expired. Please request a new one."


class ResetTokenUsedError(InvalidResetTokenError):
    default_message = "This reset code has already been used. Please request a new one."


class InvalidVerificationTokenError(FinanceUError):
    status_code = 400
    default_message = "Invalid or expired verification token"
