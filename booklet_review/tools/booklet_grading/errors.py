"""Exceptions and remote failure classification for booklet grading."""

from enum import Enum
from typing import Optional

TRANSIENT_STATUS_CODES = (429, 503)
PAYLOAD_TOO_LARGE_STATUS_CODES = (400, 413)

# e.g. "Document size exceeds supported limit: 54874064 v.s 52428800"
PAYLOAD_TOO_LARGE_MESSAGE = "exceeds supported limit"


class BookletReviewError(Exception):
    """Base class for booklet review errors."""


class EncodingError(BookletReviewError):
    """A local file could not be read for upload."""


class KeySynthesisError(BookletReviewError):
    """The answer key could not be generated or loaded."""


class EmptyResponseError(BookletReviewError):
    """The model call succeeded but returned nothing."""


class FailureKind(Enum):
    TRANSIENT = "transient"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    TERMINAL = "terminal"


def status_code_of(exc: BaseException) -> Optional[int]:
    """Return the HTTP-like status attached to an exception, if any."""
    for attr in ('status_code', 'status', 'code'):
        value = getattr(exc, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str) and value.isdigit():
            return int(value)
    return None


def classify_failure(exc: BaseException) -> FailureKind:
    """Decide whether a failed model call should be retried.

    Rate limits (429) and overload (503) are transient. Size-limit errors
    (400/413, or the provider's "exceeds supported limit" message) are
    reported without retrying, as is everything else.
    """
    status = status_code_of(exc)
    message = str(exc)

    if status in TRANSIENT_STATUS_CODES or any(str(code) in message for code in TRANSIENT_STATUS_CODES):
        return FailureKind.TRANSIENT
    if PAYLOAD_TOO_LARGE_MESSAGE in message or status in PAYLOAD_TOO_LARGE_STATUS_CODES:
        return FailureKind.PAYLOAD_TOO_LARGE
    return FailureKind.TERMINAL
