"""Tests for batch grading functionality."""

import pytest
import tempfile
from pathlib import Path
from unittest.mock import AsyncMock, Mock, call

from pydantic_ai.exceptions import ModelHTTPError

from booklet_review.tools.booklet_grading.batch_grader import BatchGrader, FILE_READ_ERROR_REMARK
from booklet_review.tools.booklet_grading.errors import EncodingError
from booklet_review.tools.booklet_grading.grader import RETRIES_EXHAUSTED_REMARK, SubmissionGrader
from booklet_review.tools.booklet_grading.models import (
    AnswerKeyItem, EvaluationParameter, GradedQuestion, ParameterScore, StudentResult
)


@pytest.fixture
def sample_config():
    """Create sample configuration."""
    return {
        'grading': {
            'max_attempts': 3,
            'backoff_seconds': 5,
            'cooldown_seconds': 2.5,
        }
    }


@pytest.fixture
def answer_key():
    return [
        AnswerKeyItem(
            question_no=1,
            question_text="Define gravity.",
            type="Theory",
            ideal_answer="Attraction between masses.",
            parameters=[
                EvaluationParameter(name="Definition", weightage=2),
                EvaluationParameter(name="Example", weightage=1),
            ],
        )
    ]


def graded(student_id: str, score: float = 2) -> StudentResult:
    return StudentResult(
        student_id=student_id,
        evaluations=[
            GradedQuestion(
                question_no=1,
                parameter_scores=[ParameterScore(name="Definition", score=score)],
                total_score=score,
                max_score=3,
                remark="Good definition.",
            )
        ],
    )


def write_booklets(directory: Path, names) -> list:
    paths = []
    for name in names:
        path = directory / name
        path.write_bytes(b"%PDF-1.4 " + name.encode())
        paths.append(path)
    return paths


class FilenameBackend:
    """Backend that echoes the filename back as the student ID, failing on request."""

    def __init__(self, failures=None):
        self.failures = failures or {}
        self.calls = []

    async def synthesize_key(self, question_text, question_files):
        raise NotImplementedError

    async def grade_submission(self, file, answer_key):
        self.calls.append(file.filename)
        if file.filename in self.failures:
            raise self.failures[file.filename]
        return graded(file.filename.rsplit('.', 1)[0])


def test_batch_grader_initialization(sample_config):
    """Test BatchGrader initialization."""
    grader = BatchGrader(Mock(), sample_config)
    assert grader.cooldown_seconds == 2.5


def test_batch_grader_default_cooldown():
    grader = BatchGrader(Mock())
    assert grader.cooldown_seconds == 2.5
    assert grader.show_progress is False


def test_find_booklet_files():
    """Test finding booklet files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        tmpdir = Path(tmpdir)
        write_booklets(tmpdir, ["carol.pdf", "alice.png", "bob.jpg"])
        (tmpdir / "notes.txt").write_text("not a booklet")
        (tmpdir / ".hidden.pdf").write_bytes(b"%PDF")
        (tmpdir / "scans").mkdir()

        grader = BatchGrader(Mock())
        files = grader.find_booklet_files(tmpdir)

        assert [f.name for f in files] == ["alice.png", "bob.jpg", "carol.pdf"]


@pytest.mark.asyncio
async def test_grade_all_in_order_with_cooldown(sample_config, answer_key):
    with tempfile.TemporaryDirectory() as tmpdir:
        paths = write_booklets(Path(tmpdir), ["s1.pdf", "s2.pdf", "s3.pdf"])
        backend = FilenameBackend()
        sleep = AsyncMock()
        batch_grader = BatchGrader(SubmissionGrader(backend, sample_config, sleep=sleep),
                                   sample_config, sleep=sleep)

        results = await batch_grader.grade_all_async(paths, answer_key)

        assert [r.student_id for r in results] == ["s1", "s2", "s3"]
        assert backend.calls == ["s1.pdf", "s2.pdf", "s3.pdf"]
        # Pause between booklets but not after the last one
        assert sleep.await_args_list == [call(2.5), call(2.5)]


@pytest.mark.asyncio
async def test_empty_batch(sample_config, answer_key):
    sleep = AsyncMock()
    progress = Mock()
    batch_grader = BatchGrader(Mock(), sample_config, sleep=sleep)

    results = await batch_grader.grade_all_async([], answer_key, progress=progress)

    assert results == []
    sleep.assert_not_awaited()
    progress.assert_not_called()


@pytest.mark.asyncio
async def test_failures_do_not_stop_the_batch(sample_config, answer_key):
    """Every booklet gets exactly one result, in input order, whatever fails."""
    with tempfile.TemporaryDirectory() as tmpdir:
        tmpdir = Path(tmpdir)
        paths = write_booklets(tmpdir, ["a.pdf", "b.pdf", "d.pdf", "e.pdf"])
        paths.insert(2, tmpdir / "c_missing.pdf")
        backend = FilenameBackend(failures={
            "b.pdf": ModelHTTPError(status_code=429, model_name="gpt-4"),
            "d.pdf": RuntimeError("bad response"),
        })
        sleep = AsyncMock()
        batch_grader = BatchGrader(SubmissionGrader(backend, sample_config, sleep=sleep),
                                   sample_config, sleep=sleep)

        results = await batch_grader.grade_all_async(paths, answer_key)

        assert len(results) == len(paths)
        assert [r.student_id for r in results] == ["a", "b.pdf", "c_missing.pdf", "d.pdf", "e"]
        assert results[1].evaluations[0].remark == RETRIES_EXHAUSTED_REMARK
        assert results[2].evaluations[0].remark == FILE_READ_ERROR_REMARK
        assert results[3].evaluations[0].remark == "ERROR: Processing failed. bad response"
        assert not results[4].is_failure

        # The unreadable booklet never reaches the model
        assert "c_missing.pdf" not in backend.calls
        assert backend.calls.count("b.pdf") == 3


@pytest.mark.asyncio
async def test_encoding_error_still_cools_down(sample_config, answer_key):
    grader = AsyncMock()
    grader.grade_async.return_value = graded("s2")
    encoder = Mock(side_effect=[EncodingError("permission denied"), Mock()])
    sleep = AsyncMock()
    batch_grader = BatchGrader(grader, sample_config, sleep=sleep, encoder=encoder)

    results = await batch_grader.grade_all_async([Path("s1.pdf"), Path("s2.pdf")], answer_key)

    assert results[0].student_id == "s1.pdf"
    assert results[0].evaluations[0].remark == FILE_READ_ERROR_REMARK
    assert results[1].student_id == "s2"
    assert grader.grade_async.await_count == 1
    assert sleep.await_args_list == [call(2.5)]


@pytest.mark.asyncio
async def test_unexpected_grader_error_is_contained(sample_config, answer_key):
    grader = AsyncMock()
    grader.grade_async.side_effect = [RuntimeError("boom"), graded("s2")]
    encoder = Mock(return_value=Mock())
    batch_grader = BatchGrader(grader, sample_config, sleep=AsyncMock(), encoder=encoder)

    results = await batch_grader.grade_all_async([Path("s1.pdf"), Path("s2.pdf")], answer_key)

    assert len(results) == 2
    assert results[0].evaluations[0].remark == FILE_READ_ERROR_REMARK
    assert results[1].student_id == "s2"


@pytest.mark.asyncio
async def test_progress_reported_as_each_booklet_starts(sample_config, answer_key):
    events = []
    grader = AsyncMock()

    async def grade_async(encoded, key):
        events.append(("grade", encoded))
        return graded(encoded)

    grader.grade_async.side_effect = grade_async
    batch_grader = BatchGrader(grader, sample_config, sleep=AsyncMock(), encoder=lambda p: p.name)

    await batch_grader.grade_all_async(
        [Path("s1.pdf"), Path("s2.pdf"), Path("s3.pdf")], answer_key,
        progress=lambda current, total: events.append(("progress", current, total))
    )

    assert events == [
        ("progress", 1, 3), ("grade", "s1.pdf"),
        ("progress", 2, 3), ("grade", "s2.pdf"),
        ("progress", 3, 3), ("grade", "s3.pdf"),
    ]


def test_grade_all_sync(sample_config, answer_key):
    """Test grading all booklets using the sync wrapper."""
    with tempfile.TemporaryDirectory() as tmpdir:
        paths = write_booklets(Path(tmpdir), ["x.pdf", "y.pdf"])
        config = {'grading': {'cooldown_seconds': 0}}
        batch_grader = BatchGrader(SubmissionGrader(FilenameBackend(), config), config)

        results = batch_grader.grade_all(paths, answer_key)

        assert [r.student_id for r in results] == ["x", "y"]
