"""LLM utilities for creating and configuring AI agents."""


import logging
import os
from typing import Optional, Dict, Any

import httpx
from openai import AsyncOpenAI
from pydantic_ai import Agent
from pydantic_ai.models.openai import OpenAIResponsesModel, OpenAIResponsesModelSettings
from pydantic_ai.providers.openai import OpenAIProvider

from booklet_review.libs.config_loader import ConfigType, get_config


# Fix up logging level for httpx to WARNING to reduce noise
logging.getLogger("httpx").setLevel(logging.WARNING)



def create_agent(configs: ConfigType,
                 model: Optional[str] = None,
                 settings_dict: Optional[Dict[str, Any]] = None,
                 system_prompt: Optional[str] = None,
                 output_type: Any = str,
                 http_client: Optional[httpx.AsyncClient] = None) -> Agent:
    """
    Create a pydantic-ai Agent configured with OpenAI models.

    Args:
        configs: Configuration dictionary (required)
        model: Model to use (overrides config value)
        settings_dict: Pydantic AI settings dict (overrides config values)
        system_prompt: System prompt for the agent (optional)
        output_type: Structured output type the agent must return (default: plain text)
        http_client: HTTP client for the OpenAI SDK (default: the SDK's own client)

    Returns:
        Configured Agent

    Raises:
        KeyError: If no model is given and none is configured
    """
    api_key = get_config("openai.api_key", configs, default=None)
    organization = get_config("openai.organization", configs, default=None)
    model = model or get_config("openai.model", configs)
    base_settings = get_config("openai.pydantic_ai_settings", configs, default={}) or {}

    # Blank values leave whatever the environment already provides
    if api_key:
        os.environ['OPENAI_API_KEY'] = api_key
    if organization:
        os.environ['OPENAI_ORG_ID'] = organization

    settings_dict = base_settings | (settings_dict or {})
    model_settings = OpenAIResponsesModelSettings(**settings_dict) if settings_dict else None
    # Callers own the retry policy, so the SDK must send each request once
    client = AsyncOpenAI(
        api_key=api_key or None,
        organization=organization or None,
        max_retries=0,
        http_client=http_client,
    )
    openai_model = OpenAIResponsesModel(model, provider=OpenAIProvider(openai_client=client))

    agent_kwargs: Dict[str, Any] = {}
    if system_prompt:
        agent_kwargs['system_prompt'] = system_prompt
    return Agent(
        model=openai_model,
        model_settings=model_settings,
        output_type=output_type,
        retries=0,
        **agent_kwargs,
    )
