"""Error types rendered by the HTTP layer as ``{"status": "error", "message": ...}``."""

from starlette import status

GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again later."


class HTTPError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = GENERIC_ERROR_MESSAGE, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class BadRequest(HTTPError):
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidInput(BadRequest):
    pass


class NoCaptionAvailable(BadRequest):
    def __init__(self, message: str = "No caption found."):
        super().__init__(message)


class FeatureDisabled(HTTPError):
    status_code = status.HTTP_501_NOT_IMPLEMENTED

    def __init__(self, message: str = "Not Implemented"):
        super().__init__(message)


class UpstreamFailure(HTTPError):
    """A failed call to an external service; the client only sees the generic message."""

    def __init__(self, detail: str):
        super().__init__(GENERIC_ERROR_MESSAGE)
        self.detail = detail

    def __str__(self) -> str:
        return self.detail


class RecipeExtractionError(UpstreamFailure):
    pass


class PublishError(UpstreamFailure):
    pass


class UpstreamTimeout(HTTPError):
    status_code = status.HTTP_504_GATEWAY_TIMEOUT

    def __init__(self, service: str, timeout_seconds: float):
        super().__init__(f"Timed out waiting for {service} after {timeout_seconds:g}s")
        self.service = service
        self.timeout_seconds = timeout_seconds
