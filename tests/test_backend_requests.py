"""Tests that send failing HTTP responses through the real OpenAI backend."""

import base64
import httpx
import pytest
from unittest.mock import AsyncMock, call

from booklet_review.tools.booklet_grading.backend import create_backend
from booklet_review.tools.booklet_grading.errors import KeySynthesisError
from booklet_review.tools.booklet_grading.grader import RETRIES_EXHAUSTED_REMARK, SubmissionGrader
from booklet_review.tools.booklet_grading.key_synthesizer import AnswerKeySynthesizer
from booklet_review.tools.booklet_grading.models import AnswerKeyItem, EncodedFile, EvaluationParameter

CONFIG = {
    'openai': {'api_key': 'test-key', 'model': 'gpt-4o'},
    'grading': {'max_attempts': 3, 'backoff_seconds': 5},
}


class RateLimitedServer:
    """Answers every request with 429 and records what was sent."""

    def __init__(self):
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(
            429,
            json={'error': {'message': 'Rate limit reached', 'type': 'rate_limit_error', 'code': None}},
        )


@pytest.fixture
def server():
    return RateLimitedServer()


@pytest.fixture
def backend(server):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(server))
    return create_backend(CONFIG, http_client=http_client)


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


@pytest.fixture
def booklet():
    return EncodedFile(
        filename="a.pdf",
        content=base64.b64encode(b"%PDF-1.4").decode('ascii'),
        mime_type="application/pdf",
    )


@pytest.mark.asyncio
async def test_grader_sends_one_request_per_attempt(server, backend, booklet, answer_key):
    sleep = AsyncMock()
    grader = SubmissionGrader(backend, CONFIG, sleep=sleep)

    result = await grader.grade_async(booklet, answer_key)

    assert result.is_failure
    assert result.evaluations[0].remark == RETRIES_EXHAUSTED_REMARK
    assert len(server.requests) == 3
    assert all(r.url.path.endswith('/responses') for r in server.requests)
    assert sleep.await_args_list == [call(5), call(10)]


@pytest.mark.asyncio
async def test_key_synthesis_sends_a_single_request(server, backend):
    synthesizer = AnswerKeySynthesizer(backend)

    with pytest.raises(KeySynthesisError, match="Failed to generate answer key"):
        await synthesizer.synthesize_async("1. Define gravity.")

    assert len(server.requests) == 1
