"""Remote model backend used to build answer keys and grade booklets."""

import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence

import httpx
from pydantic_ai import Agent

from booklet_review.libs.config_loader import ConfigType
from booklet_review.libs.llm import create_agent
from .models import AnswerKeyItem, EncodedFile, StudentResult
from .prompts import SYSTEM_PROMPT, build_grading_request, build_key_request

LOG = logging.getLogger(__name__)


class GradingBackend(Protocol):
    """A remote capability that reads documents and returns structured results.

    Implementations return ``None`` when the model produced no output and raise
    on failure. Exceptions should expose the HTTP status as ``status_code``
    (or ``status``/``code``) so failures can be classified for retry.
    """

    async def synthesize_key(self, question_text: str,
                             question_files: Sequence[EncodedFile]) -> Optional[List[AnswerKeyItem]]:
        ...

    async def grade_submission(self, file: EncodedFile,
                               answer_key: Sequence[AnswerKeyItem]) -> Optional[StudentResult]:
        ...


class PydanticAIBackend:
    """Backend that runs one pydantic-ai agent per operation."""

    def __init__(self, key_agent: Agent, grading_agent: Agent):
        self.key_agent = key_agent
        self.grading_agent = grading_agent

    async def synthesize_key(self, question_text: str,
                             question_files: Sequence[EncodedFile]) -> Optional[List[AnswerKeyItem]]:
        result = await self.key_agent.run(build_key_request(question_text, question_files))
        return result.output

    async def grade_submission(self, file: EncodedFile,
                               answer_key: Sequence[AnswerKeyItem]) -> Optional[StudentResult]:
        result = await self.grading_agent.run(build_grading_request(file, answer_key))
        return result.output


def create_backend(configs: ConfigType,
                   model: Optional[str] = None,
                   settings: Optional[Dict[str, Any]] = None,
                   http_client: Optional[httpx.AsyncClient] = None) -> PydanticAIBackend:
    """
    Create the default backend with structured-output agents for both operations.

    Args:
        configs: Configuration dictionary (required)
        model: Model to use (overrides config value)
        settings: Pydantic AI settings dict (overrides config values)
        http_client: HTTP client shared by both agents (optional)

    Returns:
        Configured PydanticAIBackend
    """
    key_agent = create_agent(
        configs=configs,
        model=model,
        settings_dict=settings,
        system_prompt=SYSTEM_PROMPT,
        output_type=List[AnswerKeyItem],
        http_client=http_client,
    )
    grading_agent = create_agent(
        configs=configs,
        model=model,
        settings_dict=settings,
        system_prompt=SYSTEM_PROMPT,
        output_type=StudentResult,
        http_client=http_client,
    )
    LOG.debug("Created grading backend with model %s", model or configs.get('openai', {}).get('model'))
    return PydanticAIBackend(key_agent=key_agent, grading_agent=grading_agent)
