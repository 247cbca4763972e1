class TrackerError(ValueError):
    """Base for failures that are reported to the caller with a message."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(TrackerError):
    status_code = 400


class WeakInputError(ValidationError):
    pass


class InvalidCredentials(ValidationError):
    """Login failed. Unknown email and wrong password share this error."""

    def __init__(self, message: str = "Invalid email or password") -> None:
        super().__init__(message)


class ConflictError(TrackerError):
    status_code = 400


class DuplicateEmail(ConflictError):
    def __init__(self, message: str = "User with this email already exists") -> None:
        super().__init__(message)


class AuthError(TrackerError):
    status_code = 401


class MissingCredential(AuthError):
    def __init__(self, message: str = "No token, authorization denied") -> None:
        super().__init__(message)


class InvalidToken(AuthError):
    def __init__(self, message: str = "Token is not valid") -> None:
        super().__init__(message)


class InvalidCredential(AuthError):
    def __init__(self, message: str = "Token is not valid") -> None:
        super().__init__(message)


class UnknownUser(AuthError):
    def __init__(self, message: str = "Token is not valid") -> None:
        super().__init__(message)


class NotFoundError(TrackerError):
    status_code = 404


class DependencyError(TrackerError):
    status_code = 500
