"""Error hierarchy for notionmd.

Every error raised by the package inherits from :class:`NotionMdError`.
Each carries a machine-readable ``code`` (from :class:`ErrorCode`), a
human-readable ``message``, an optional structured ``context`` dict, and
an optional ``cause`` (chained exception).

Scope of each family:

* :class:`NotionMdConfigError` -- raised before any work starts; aborts
  the whole run.
* :class:`NotionMdFetchError` and its transport subclasses -- a listing
  call failed; fatal to the one page pipeline that issued it.
* :class:`NotionMdAllocationError` -- no free file name could be found;
  fatal to the batch.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error the package can raise."""

    CONFIG_ERROR = "CONFIG_ERROR"
    FETCH_ERROR = "FETCH_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    PERMISSION_ERROR = "PERMISSION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    NETWORK_ERROR = "NETWORK_ERROR"
    RETRY_EXHAUSTED = "RETRY_EXHAUSTED"
    ALLOCATION_EXHAUSTED = "ALLOCATION_EXHAUSTED"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class NotionMdError(Exception):
    """Base exception for all notionmd errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

class NotionMdConfigError(NotionMdError):
    """A required setting is missing or invalid.

    Context keys: ``field`` or ``missing`` (list of variable names),
    ``database_id``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.CONFIG_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Fetch / transport errors
# ---------------------------------------------------------------------------

class NotionMdFetchError(NotionMdError):
    """Base class for failed calls against the Notion API.

    Subclasses only override :attr:`default_code`.  Context varies by
    subclass; ``status_code`` and ``path`` are set whenever a response
    was received.
    """

    default_code: str = ErrorCode.FETCH_ERROR

    def __init__(
        self,
        message: str = "Fetch error",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=self.default_code,
            message=message,
            context=context,
            cause=cause,
        )


class NotionMdValidationError(NotionMdFetchError):
    """Notion returned 400 (or another non-retryable 4xx)."""

    default_code = ErrorCode.VALIDATION_ERROR


class NotionMdAuthError(NotionMdFetchError):
    """Notion returned 401 -- the integration token is invalid or expired."""

    default_code = ErrorCode.AUTH_ERROR


class NotionMdPermissionError(NotionMdFetchError):
    """Notion returned 403 -- the integration was not shared with the resource."""

    default_code = ErrorCode.PERMISSION_ERROR


class NotionMdNotFoundError(NotionMdFetchError):
    """Notion returned 404."""

    default_code = ErrorCode.NOT_FOUND


class NotionMdNetworkError(NotionMdFetchError):
    """A transport-level failure (DNS, connection reset, timeout).

    Context keys: ``url``, ``attempt``.
    """

    default_code = ErrorCode.NETWORK_ERROR


class NotionMdRetryExhaustedError(NotionMdFetchError):
    """Every retry attempt for a retryable status was used up.

    Context keys: ``attempts``, ``last_status_code``.
    """

    default_code = ErrorCode.RETRY_EXHAUSTED


# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------

class NotionMdAllocationError(NotionMdError):
    """No unused file name was found within the probe bound.

    Context keys: ``stem``, ``attempts``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.ALLOCATION_EXHAUSTED,
            message=message,
            context=context,
            cause=cause,
        )
