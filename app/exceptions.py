"""Error taxonomy shared by services and routes.

Services raise these; ``app.main`` turns them into the
``{"success": false, "error": {"message": ...}}`` envelope.
"""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AppError):
    status_code = 400


class AuthError(AppError):
    status_code = 401


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class CouponError(AppError):
    status_code = 400


class DependencyError(AppError):
    status_code = 500
