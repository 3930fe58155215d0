"""
Error conversion for Gemini API calls.

Used by adapters so that callers only ever see FileSearchError.
Calls are not retried here: a failed request surfaces immediately and the
caller decides (the batch executor records it, the poller aborts).
"""

from functools import wraps
from typing import Callable, ParamSpec, TypeVar

import httpx
from google.genai import errors as genai_errors

from logging_config import logger
from models import ErrorKind, FileSearchError

T = TypeVar("T")
P = ParamSpec("P")


# HTTP status codes the caller may reasonably try again later
RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({
    429,  # Rate limited
    500,  # Internal server error
    502,  # Bad gateway
    503,  # Service unavailable
    504,  # Gateway timeout
})


def _get_http_status(exception: Exception) -> int | None:
    """
    Extract HTTP status code from exception if available.

    Works with google.genai.errors.APIError (code) and httpx/requests-style
    errors (status_code, response.status_code).
    """
    # google.genai.errors.APIError
    if isinstance(exception, genai_errors.APIError):
        code = getattr(exception, "code", None)
        if isinstance(code, int):
            return code

    if hasattr(exception, "status_code"):
        status = exception.status_code
        if isinstance(status, int):
            return status

    response = getattr(exception, "response", None)
    if response is not None and hasattr(response, "status_code"):
        status = response.status_code
        if isinstance(status, int):
            return status

    return None


def _error_message(exception: Exception) -> str:
    if isinstance(exception, genai_errors.APIError) and exception.message:
        return str(exception.message)
    return str(exception)


def convert_api_error(exception: Exception) -> FileSearchError:
    """Convert an exception to a FileSearchError if not already one."""
    if isinstance(exception, FileSearchError):
        return exception

    message = _error_message(exception)

    # Check HTTP status first (more reliable than exception type)
    status = _get_http_status(exception)
    if status is not None:
        details = {"status": status}
        retryable = status in RETRYABLE_STATUS_CODES
        if status == 401:
            return FileSearchError(ErrorKind.AUTH_REQUIRED, message, details)
        elif status == 403:
            return FileSearchError(ErrorKind.PERMISSION_DENIED, message, details)
        elif status == 404:
            return FileSearchError(ErrorKind.NOT_FOUND, message, details)
        elif status == 429:
            return FileSearchError(ErrorKind.RATE_LIMITED, message, details, retryable=True)
        elif status >= 500:
            return FileSearchError(ErrorKind.NETWORK_ERROR, message, details, retryable=retryable)
        elif status >= 400:
            return FileSearchError(ErrorKind.REMOTE_REJECTION, message, details)

    # Fall back to exception type. Timeouts subclass TransportError in httpx.
    if isinstance(exception, (httpx.TimeoutException, TimeoutError)):
        return FileSearchError(ErrorKind.TIMEOUT, message, retryable=True)
    if isinstance(exception, (httpx.TransportError, ConnectionError)):
        return FileSearchError(ErrorKind.NETWORK_ERROR, message, retryable=True)
    if isinstance(exception, FileNotFoundError):
        return FileSearchError(ErrorKind.INVALID_INPUT, message)

    return FileSearchError(ErrorKind.UNKNOWN, message)


def translate_errors(func: Callable[P, T]) -> Callable[P, T]:
    """
    Convert any exception raised by an API call into FileSearchError.

    Example:
        @translate_errors
        def get_store(self, name: str):
            return self._client.file_search_stores.get(name=name)
    """

    @wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        try:
            return func(*args, **kwargs)
        except FileSearchError:
            raise
        except Exception as e:
            error = convert_api_error(e)
            logger.debug(f"{func.__name__} failed ({error.kind.value}): {error.message}")
            raise error from e

    return wrapper
