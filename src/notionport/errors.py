"""Full error hierarchy for notionport.

Every public error class inherits from NotionportError. Each carries a
machine-readable ``code`` (from :class:`ErrorCode`), a human-readable
``message``, an optional structured ``context`` dict, and an optional
``cause`` (chained exception).

Error codes are defined as a :class:`str` enum so that they serialise
naturally to JSON and can be matched with simple ``==`` comparisons.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error notionport can raise."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    PERMISSION_ERROR = "PERMISSION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    RETRY_EXHAUSTED = "RETRY_EXHAUSTED"
    NETWORK_ERROR = "NETWORK_ERROR"
    CONVERSION_ERROR = "CONVERSION_ERROR"
    EMPTY_DOCUMENT = "EMPTY_DOCUMENT"
    SUBMISSION_ERROR = "SUBMISSION_ERROR"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class NotionportError(Exception):
    """Base exception for all notionport errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
        Keys and expected types are documented per subclass.
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


class _CodedError(NotionportError):
    """Shared constructor for subclasses bound to a single error code."""

    default_code: str = ErrorCode.VALIDATION_ERROR

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=self.default_code,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# API / transport errors
# ---------------------------------------------------------------------------

class NotionportValidationError(_CodedError):
    """Notion API returned 400 (or another non-retryable 4xx).

    Context keys: ``status_code``, ``notion_code``, ``body``.
    """

    default_code = ErrorCode.VALIDATION_ERROR


class NotionportAuthError(_CodedError):
    """Notion API returned 401: the integration token is invalid or expired.

    Context keys: ``status_code``, ``notion_code``.
    """

    default_code = ErrorCode.AUTH_ERROR


class NotionportPermissionError(_CodedError):
    """Notion API returned 403: the integration lacks access to the resource.

    Context keys: ``status_code``, ``notion_code``, ``operation``.
    """

    default_code = ErrorCode.PERMISSION_ERROR


class NotionportNotFoundError(_CodedError):
    """Notion API returned 404: the requested resource does not exist.

    Context keys: ``status_code``, ``notion_code``, ``path``.
    """

    default_code = ErrorCode.NOT_FOUND


class NotionportConflictError(_CodedError):
    """Notion API returned 409, a transient write conflict.

    Raised once per 409 response by the transport; the write executor
    retries these and raises a final one (with ``attempts`` in the
    context) when its retry ceiling is reached.

    Context keys: ``status_code``, ``notion_code``, ``attempts``,
    ``parent_id``.
    """

    default_code = ErrorCode.CONFLICT


class NotionportRetryExhaustedError(_CodedError):
    """All retry attempts have been exhausted for a retryable request.

    Context keys: ``attempts``, ``last_status_code``.
    """

    default_code = ErrorCode.RETRY_EXHAUSTED


class NotionportNetworkError(_CodedError):
    """A transport-level failure occurred (timeout, DNS, connection reset).

    Context keys: ``url``, ``attempt``.
    """

    default_code = ErrorCode.NETWORK_ERROR


# ---------------------------------------------------------------------------
# Conversion errors
# ---------------------------------------------------------------------------

class NotionportConversionError(NotionportError):
    """Base class for errors during Markdown-to-Notion conversion."""

    def __init__(
        self,
        code: str = ErrorCode.CONVERSION_ERROR,
        message: str = "Conversion error",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            context=context,
            cause=cause,
        )


class NotionportEmptyDocumentError(NotionportConversionError):
    """The source tree has no renderable children, so there is nothing to
    submit.

    Context keys: ``source_length``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.EMPTY_DOCUMENT,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Submission errors
# ---------------------------------------------------------------------------

class NotionportSubmissionError(_CodedError):
    """The submission planner could not continue, e.g. because a write
    returned no identifier for a block whose children still need a parent.

    Context keys: ``parent_id``, ``batch_size``.
    """

    default_code = ErrorCode.SUBMISSION_ERROR
