"""Batch grader that works through booklets one at a time."""

import asyncio
import logging
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from tqdm import tqdm

from booklet_review.libs.config_loader import ConfigType, get_config
from .errors import EncodingError
from .grader import SleepFunc, SubmissionGrader
from .models import AnswerKeyItem, EncodedFile, StudentResult
from .payload import SUPPORTED_MIME_TYPES, encode_file, guess_mime_type

LOG = logging.getLogger(__name__)

COOLDOWN_SECONDS = 2.5

FILE_READ_ERROR_REMARK = "ERROR: File read error or client-side failure."

ProgressCallback = Callable[[int, int], None]


class BatchGrader:
    """Grade many booklets sequentially with a pause between API calls.

    Booklets are never graded concurrently: the pause between calls is what
    keeps a batch under the shared API rate limit.
    """

    def __init__(self, grader: SubmissionGrader,
                 configs: Optional[ConfigType] = None,
                 sleep: Optional[SleepFunc] = None,
                 encoder: Callable[[Path], EncodedFile] = encode_file):
        """
        Initialize the batch grader.

        Args:
            grader: Grader used for each booklet
            configs: Configuration dictionary (grading.cooldown_seconds, grading.show_progress)
            sleep: Awaitable used for the pause between booklets (default: asyncio.sleep)
            encoder: Function that reads and encodes a booklet file
        """
        configs = configs or {}
        self.grader = grader
        self.cooldown_seconds = float(get_config("grading.cooldown_seconds", configs, default=COOLDOWN_SECONDS))
        self.show_progress = bool(get_config("grading.show_progress", configs, default=False))
        self.sleep = sleep or asyncio.sleep
        self.encoder = encoder

        LOG.info(f"BatchGrader initialized with cooldown={self.cooldown_seconds}s")

    def find_booklet_files(self, booklets_dir: Path) -> List[Path]:
        """
        Find all gradable booklet files (PDFs and images) in a directory.

        Args:
            booklets_dir: Directory containing one file per student

        Returns:
            Booklet paths sorted by name
        """
        booklet_files = []
        for item in booklets_dir.iterdir():
            if not item.is_file() or item.name.startswith('.'):
                continue
            if guess_mime_type(item) in SUPPORTED_MIME_TYPES:
                booklet_files.append(item)
            else:
                LOG.debug(f"Skipping unsupported file: {item.name}")

        booklet_files.sort()
        return booklet_files

    async def _grade_single_booklet_async(self, path: Path,
                                          answer_key: Sequence[AnswerKeyItem]) -> StudentResult:
        try:
            encoded = self.encoder(path)
            return await self.grader.grade_async(encoded, answer_key)
        except EncodingError as e:
            LOG.error(f"Error reading file {path.name}: {e}")
        except Exception as e:  # pylint: disable=broad-except
            import traceback
            LOG.error(f"Unexpected error grading {path.name}: {e} " + traceback.format_exc())
        return StudentResult.failed(path.name, FILE_READ_ERROR_REMARK)

    async def grade_all_async(self, booklet_files: Sequence[Path],
                              answer_key: Sequence[AnswerKeyItem],
                              progress: Optional[ProgressCallback] = None) -> List[StudentResult]:
        """
        Grade every booklet, in order.

        Args:
            booklet_files: Booklet files to grade
            answer_key: Answer key shared by every booklet
            progress: Called with (current, total) as each booklet starts

        Returns:
            One StudentResult per input file, in input order
        """
        total = len(booklet_files)
        results: List[StudentResult] = []

        with tqdm(total=total, desc="Grading booklets", disable=not self.show_progress) as pbar:
            for i, path in enumerate(booklet_files):
                path = Path(path)
                if progress:
                    progress(i + 1, total)
                LOG.debug(f"Grading booklet {i + 1}/{total}: {path.name}")

                result = await self._grade_single_booklet_async(path, answer_key)
                results.append(result)
                pbar.update(1)

                if result.is_failure:
                    LOG.warning(f"Failed: {path.name} - {result.evaluations[0].remark}")
                else:
                    LOG.debug(f"Completed: {result.student_id} - {result.total_score}/{result.max_score}")

                if i < total - 1:
                    await self.sleep(self.cooldown_seconds)

        return results

    def grade_all(self, booklet_files: Sequence[Path],
                  answer_key: Sequence[AnswerKeyItem],
                  progress: Optional[ProgressCallback] = None) -> List[StudentResult]:
        """Synchronous wrapper for grade_all_async."""
        return asyncio.run(self.grade_all_async(booklet_files, answer_key, progress))
