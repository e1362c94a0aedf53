"""Generate, save and load answer keys."""

import asyncio
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

import yaml
from pydantic import TypeAdapter, ValidationError

from .backend import GradingBackend
from .errors import KeySynthesisError
from .models import AnswerKey, AnswerKeyItem, EncodedFile
from .payload import encode_file

LOG = logging.getLogger(__name__)

_ANSWER_KEY_ADAPTER = TypeAdapter(List[AnswerKeyItem])


class AnswerKeySynthesizer:
    """Turn question text and/or question paper files into an answer key."""

    def __init__(self, backend: GradingBackend):
        self.backend = backend

    async def synthesize_async(self, question_text: str = "",
                               question_files: Sequence[EncodedFile] = ()) -> AnswerKey:
        """
        Generate an answer key with partial-credit parameters for every question.

        This is a one-shot call: any failure is fatal and is not retried.

        Args:
            question_text: Free-text questions (may be empty if files are given)
            question_files: Encoded question papers (may be empty if text is given)

        Returns:
            The answer key, one item per question

        Raises:
            ValueError: If neither question text nor question files are given
            KeySynthesisError: If the model call fails or returns no usable key
        """
        if not question_text.strip() and not question_files:
            raise ValueError("Provide questions via text or at least one question file")

        LOG.info(f"Generating answer key from {len(question_files)} file(s)"
                 f"{' and question text' if question_text.strip() else ''}")
        try:
            output = await self.backend.synthesize_key(question_text, list(question_files))
        except Exception as e:
            LOG.error(f"Error generating answer key: {e}")
            raise KeySynthesisError(f"Failed to generate answer key: {e}") from e

        if output is None:
            raise KeySynthesisError("No answer key returned by the model")
        try:
            answer_key = _ANSWER_KEY_ADAPTER.validate_python(output)
        except ValidationError as e:
            raise KeySynthesisError(f"Answer key did not match the expected shape: {e}") from e
        if not answer_key:
            raise KeySynthesisError("The model did not extract any questions")

        LOG.info(f"Generated answer key with {len(answer_key)} questions")
        return answer_key

    def synthesize(self, question_text: str = "",
                   question_files: Sequence[EncodedFile] = ()) -> AnswerKey:
        """Synchronous wrapper for synthesize_async."""
        return asyncio.run(self.synthesize_async(question_text, question_files))


def load_question_inputs(question_text: Optional[str] = None,
                         questions_file: Optional[Path] = None,
                         question_papers: Iterable[Path] = ()) -> Tuple[str, List[EncodedFile]]:
    """
    Collect question material from the command line.

    Args:
        question_text: Questions typed inline
        questions_file: Plain-text file of questions, appended to question_text
        question_papers: PDFs or images of the question paper

    Returns:
        Tuple of (question text, encoded question papers)

    Raises:
        EncodingError: If a question paper cannot be read
    """
    texts = [question_text] if question_text else []
    if questions_file:
        texts.append(Path(questions_file).read_text(encoding='utf-8'))
    files = [encode_file(p) for p in question_papers]
    return "\n\n".join(texts), files


def answer_key_to_yaml_list(answer_key: Sequence[AnswerKeyItem]) -> list:
    """Convert to a list suitable for YAML serialization."""
    return [item.model_dump() for item in answer_key]


def save_answer_key(answer_key: Sequence[AnswerKeyItem], output_path: Path):
    """
    Save an answer key to a YAML file.

    Args:
        answer_key: Answer key to save
        output_path: Path to the YAML file
    """
    with open(output_path, 'w', encoding='utf-8') as f:
        yaml.dump(answer_key_to_yaml_list(answer_key), f,
                  default_flow_style=False, sort_keys=False, allow_unicode=True)
    LOG.info(f"Answer key saved to {output_path}")


def load_answer_key(input_path: Path) -> AnswerKey:
    """
    Load an answer key saved by save_answer_key.

    Raises:
        KeySynthesisError: If the file is missing or does not hold a valid answer key
    """
    try:
        with open(input_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
        answer_key = _ANSWER_KEY_ADAPTER.validate_python(data)
    except (OSError, yaml.YAMLError, ValidationError) as e:
        raise KeySynthesisError(f"Could not load answer key from {input_path}: {e}") from e
    if not answer_key:
        raise KeySynthesisError(f"Answer key {input_path} contains no questions")
    return answer_key
