from typing import Optional


class ServiceError(Exception):
    """Base class for failures the API reports to clients"""
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ServiceError):
    status_code = 400


class AuthenticationError(ServiceError):
    status_code = 401


class AuthorizationError(ServiceError):
    status_code = 401


class NotFoundError(ServiceError):
    status_code = 404


class TransportError(ServiceError):
    status_code = 503


ERRORS = {
    cls.__name__: cls
    for cls in (ValidationError, AuthenticationError, AuthorizationError, NotFoundError, TransportError)
}
