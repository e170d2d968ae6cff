class CmsError(Exception):
    """Base class for errors surfaced to API clients."""


class ConfigError(CmsError):
    pass


class ValidationError(CmsError):
    pass


class NotFoundError(CmsError):
    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message)


class StoreError(CmsError):
    pass


class UploadError(CmsError):
    """Image host failure; keeps the upstream status when there was one."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status

    def __str__(self) -> str:
        message = super().__str__()
        if self.status is not None:
            return f"Image upload failed ({self.status}): {message}"
        return message


class AuthError(CmsError):
    status_code = 401


class InvalidCredentialsError(AuthError):
    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message)


class MissingTokenError(AuthError):
    def __init__(self, message: str = "Access token required") -> None:
        super().__init__(message)


class InvalidTokenError(AuthError):
    status_code = 403

    def __init__(self, message: str = "Invalid or expired token") -> None:
        super().__init__(message)
