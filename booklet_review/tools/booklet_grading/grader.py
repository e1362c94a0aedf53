"""Grade a single booklet against an answer key, retrying on rate limits."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Sequence

from booklet_review.libs.config_loader import ConfigType, get_config
from .backend import GradingBackend
from .errors import EmptyResponseError, FailureKind, classify_failure
from .models import AnswerKeyItem, EncodedFile, StudentResult

LOG = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
BACKOFF_SECONDS = 5.0

UNKNOWN_STUDENT_ID = 'unknown'

RETRIES_EXHAUSTED_REMARK = "ERROR: System timeout or rate limit exceeded after retries."
FILE_TOO_LARGE_REMARK = "ERROR: File size exceeds API limit (50MB). Evaluation skipped."
PROCESSING_FAILED_REMARK = "ERROR: Processing failed. {message}"

SleepFunc = Callable[[float], Awaitable[None]]


class SubmissionGrader:
    """Grade one encoded booklet per call; never raises."""

    def __init__(self, backend: GradingBackend,
                 configs: Optional[ConfigType] = None,
                 sleep: Optional[SleepFunc] = None):
        """
        Initialize the grader.

        Args:
            backend: Remote model backend
            configs: Configuration dictionary (grading.* keys override the defaults)
            sleep: Awaitable used for backoff delays (default: asyncio.sleep)
        """
        configs = configs or {}
        self.backend = backend
        self.max_attempts = int(get_config("grading.max_attempts", configs, default=MAX_ATTEMPTS))
        self.backoff_seconds = float(get_config("grading.backoff_seconds", configs, default=BACKOFF_SECONDS))
        self.sleep = sleep or asyncio.sleep

    async def grade_async(self, file: EncodedFile,
                          answer_key: Sequence[AnswerKeyItem]) -> StudentResult:
        """
        Grade a booklet asynchronously.

        Rate-limit and overload errors are retried up to max_attempts in total,
        waiting attempt * backoff_seconds before each retry. Every other failure
        is reported immediately. Failures are returned as a placeholder
        StudentResult whose remark explains what went wrong.

        Args:
            file: Encoded booklet
            answer_key: Answer key to grade against

        Returns:
            StudentResult for this booklet
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                result = await self.backend.grade_submission(file, answer_key)
                if result is None:
                    raise EmptyResponseError("No grading response from model")
                return self._with_student_id(result, file.filename)

            except Exception as e:  # pylint: disable=broad-except
                kind = classify_failure(e)

                if kind is FailureKind.TRANSIENT:
                    if attempt < self.max_attempts:
                        delay = attempt * self.backoff_seconds
                        LOG.warning(f"Attempt {attempt} failed for {file.filename}. Retrying in {delay:g}s...")
                        await self.sleep(delay)
                        continue
                    LOG.error(f"Giving up on {file.filename} after {attempt} attempts: {e}")
                    return StudentResult.failed(file.filename, RETRIES_EXHAUSTED_REMARK)

                if kind is FailureKind.PAYLOAD_TOO_LARGE:
                    LOG.error(f"File too large: {file.filename}")
                    return StudentResult.failed(file.filename, FILE_TOO_LARGE_REMARK)

                LOG.error(f"Error grading file {file.filename}: {e}")
                message = str(e) or 'Unknown error'
                return StudentResult.failed(file.filename, PROCESSING_FAILED_REMARK.format(message=message))

        return StudentResult.failed(file.filename, RETRIES_EXHAUSTED_REMARK)

    def grade(self, file: EncodedFile, answer_key: Sequence[AnswerKeyItem]) -> StudentResult:
        """Synchronous wrapper for grade_async."""
        return asyncio.run(self.grade_async(file, answer_key))

    @staticmethod
    def _with_student_id(result: StudentResult, filename: str) -> StudentResult:
        """Fall back to the filename when the model could not read a student ID."""
        student_id = result.student_id.strip()
        if not student_id or student_id.lower() == UNKNOWN_STUDENT_ID:
            return result.model_copy(update={'student_id': filename})
        return result
