class ApiError(Exception):
    """The server answered with ``success: false`` or a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ConnectionTimeout(ApiError):
    def __init__(self, message: str = "Connection timeout"):
        super().__init__(message)


class NetworkError(ApiError):
    def __init__(self, message: str = "Cannot connect to backend server"):
        super().__init__(message)


class InvalidResponse(ApiError):
    def __init__(self, message: str = "Backend server returned invalid response", status_code: int | None = None):
        super().__init__(message, status_code)
