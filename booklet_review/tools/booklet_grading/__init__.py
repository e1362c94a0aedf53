"""Booklet grading tool: answer key generation, booklet evaluation and CSV reports."""

from .grader import SubmissionGrader
from .batch_grader import BatchGrader
from .backend import GradingBackend, PydanticAIBackend, create_backend
from .key_synthesizer import AnswerKeySynthesizer, load_answer_key, save_answer_key
from .models import (
    AnswerKey, AnswerKeyItem, EncodedFile, EvaluationParameter,
    GradedQuestion, ParameterScore, StudentResult
)
from .errors import EncodingError, KeySynthesisError
from .payload import encode_file
from .report import generate_report, save_report

__all__ = [
    'SubmissionGrader',
    'BatchGrader',
    'GradingBackend',
    'PydanticAIBackend',
    'create_backend',
    'AnswerKeySynthesizer',
    'load_answer_key',
    'save_answer_key',
    'AnswerKey',
    'AnswerKeyItem',
    'EncodedFile',
    'EvaluationParameter',
    'GradedQuestion',
    'ParameterScore',
    'StudentResult',
    'EncodingError',
    'KeySynthesisError',
    'encode_file',
    'generate_report',
    'save_report',
]
