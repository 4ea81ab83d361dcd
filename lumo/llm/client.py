"""
LLM client factory

Creates the chat model used by the guardrails and the agent loop.
"""

from typing import Optional
from loguru import logger

from lumo.config.settings import settings


def llm_enabled() -> bool:
    """Whether a language model is configured for this process."""
    return bool(settings.openai_api_key)


def create_llm(temperature: Optional[float] = None, max_completion_tokens: Optional[int] = None, model: Optional[str] = None):
    """
    Factory function to create the chat model.

    Args:
        temperature: Generation temperature (defaults to settings.openai_temperature)
        max_completion_tokens: Max tokens for completion (defaults to settings.max_output_tokens)
        model: Model name (defaults to settings.openai_model)

    Returns:
        LangChain ChatOpenAI instance
    """
    from langchain_openai import ChatOpenAI

    if not settings.openai_api_key:
        raise ValueError("OPENAI_API_KEY is required to create a chat model")

    return ChatOpenAI(
        model=model or settings.openai_model,
        api_key=settings.openai_api_key,
        temperature=temperature if temperature is not None else settings.openai_temperature,
        max_completion_tokens=max_completion_tokens or settings.max_output_tokens,
    )


def create_llm_if_configured(**kwargs):
    """
    Create the chat model, or return None when no API key is configured.

    A None model is the "disabled" signal every pipeline stage understands:
    guardrails pass through and the agent replies with an unavailable notice.
    """
    if not llm_enabled():
        logger.warning("⚠️  OPENAI_API_KEY not set - agent runs with guardrails bypassed and no model replies")
        return None

    masked_key = settings.openai_api_key[:8] + "..." + settings.openai_api_key[-4:] if len(settings.openai_api_key) > 12 else "***"
    logger.info(f"✅ LLM: OpenAI | Model: {settings.openai_model} | API key loaded: {masked_key}")
    return create_llm(**kwargs)
