"""
Application error taxonomy.

Every failure is scoped to the current user action. Services raise these
exceptions; the app factory turns them into JSON responses carrying the
``status_code`` declared on each class.
"""


class PlanMarketError(Exception):
    """Base class for recoverable, user-visible errors."""

    status_code = 400
    code = 'error'

    def __init__(self, message=None):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__

    def to_dict(self):
        return {'error': self.code, 'message': self.message}


class ValidationError(PlanMarketError):
    """The submitted data is not valid."""

    status_code = 400
    code = 'validation_error'


class VerificationCodeMismatch(ValidationError):
    """Incorrect verification code."""

    code = 'verification_code_mismatch'


class AuthenticationRequired(PlanMarketError):
    """You need to sign in to do this."""

    status_code = 401
    code = 'authentication_required'


class SessionExpiredError(PlanMarketError):
    """Session not found. Please restart the sign-up."""

    status_code = 401
    code = 'session_expired'


class UnverifiedAccountError(PlanMarketError):
    """Please verify your email before signing in."""

    status_code = 403
    code = 'unverified_account'


class PermissionDeniedError(PlanMarketError):
    """You are not allowed to do this."""

    status_code = 403
    code = 'permission_denied'


class NotFoundError(PlanMarketError):
    """The requested record does not exist."""

    status_code = 404
    code = 'not_found'


class RemoteError(PlanMarketError):
    """The remote service could not complete the request. Please try again."""

    status_code = 502
    code = 'remote_error'
