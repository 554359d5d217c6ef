class PoolError(Exception):
    """Base for errors that map to a JSON error response."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PoolError):
    status_code = 400


class AuthError(PoolError):
    status_code = 401


class LockedError(PoolError):
    status_code = 400


class NotFoundError(PoolError):
    status_code = 404


class CapacityError(PoolError):
    status_code = 400


class ConfigurationError(PoolError):
    status_code = 500
