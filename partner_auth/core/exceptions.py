"""
Domain exceptions for the authorization flow.

These exceptions represent flow failures and are caught by the
centralized exception handlers in main.py, which map them to HTTP
responses.
"""


class AuthorizationFlowError(Exception):
    """Base class for every failure of an authorization attempt."""

    pass


class AuthorizationValidationError(AuthorizationFlowError):
    """
    Raised when the callback request itself is invalid.

    This is a client-side error and should result in a 400 response.
    The user has to restart the flow.
    """

    pass


class StateMismatchError(AuthorizationValidationError):
    """Raised when the returned state does not match the session state."""

    pass


class MissingCodeError(AuthorizationValidationError):
    """Raised when the callback carries no authorization code."""

    pass


class ProviderTransportError(AuthorizationFlowError):
    """
    Raised when a call to the identity provider fails.

    Covers network errors, timeouts, non-2xx responses, OAuth error payloads
    and token responses missing required fields.
    """

    pass


class IncompleteProfileError(AuthorizationFlowError):
    """
    Raised when the profile response succeeded but lacks the user id or email.
    """

    pass


class StoreError(AuthorizationFlowError):
    """Raised for any failure of the authorization store."""

    pass
