"""
Claude API Client for the content workflow

Provides an async client for the Claude API with token tracking and a
timeout-bounded completion helper used by the analysis and improvement
stages.
"""

import asyncio
import logging
from typing import Any, Dict, Optional
from dataclasses import dataclass

import anthropic

from contentflow.utils.config import ConfigurationError, Settings, get_settings

logger = logging.getLogger(__name__)


class LLMError(Exception):
    """The LLM call failed or returned nothing usable."""
    pass


class LLMTimeoutError(LLMError):
    """The LLM call did not finish within its time budget."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"AI API timeout after {timeout:g} seconds")


@dataclass
class TokenUsage:
    """Track token usage for cost calculation."""
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    @property
    def estimated_cost(self) -> float:
        """Estimate cost based on Claude Sonnet 4 pricing."""
        # Sonnet 4 pricing: $3/1M input, $15/1M output
        input_cost = (self.input_tokens / 1_000_000) * 3.0
        output_cost = (self.output_tokens / 1_000_000) * 15.0
        return input_cost + output_cost


@dataclass
class AnalysisResponse:
    """Response from a Claude call."""
    content: str
    usage: TokenUsage
    model: str
    stop_reason: str
    success: bool = True
    error: Optional[str] = None


class ClaudeClient:
    """
    Async client for Claude API.

    Features:
    - Token usage tracking
    - Timeout-bounded completion
    """

    DEFAULT_MODEL = "claude-sonnet-4-20250514"
    MAX_TOKENS = 1500
    TEMPERATURE = 0.3

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
    ):
        """
        Initialize Claude client.

        Args:
            api_key: Anthropic API key
            model: Model to use (defaults to Sonnet 4)
        """
        if not api_key:
            raise ConfigurationError("ANTHROPIC_API_KEY environment variable is required")

        self.model = model or self.DEFAULT_MODEL
        self.async_client = anthropic.AsyncAnthropic(api_key=api_key)

        # Track cumulative usage
        self.total_usage = TokenUsage()
        self.call_count = 0

    async def analyze(
        self,
        prompt: str,
        system: Optional[str] = None,
        max_tokens: int = MAX_TOKENS,
        temperature: float = TEMPERATURE,
    ) -> AnalysisResponse:
        """
        Send a prompt to Claude.

        Args:
            prompt: User prompt
            system: System prompt
            max_tokens: Maximum output tokens
            temperature: Sampling temperature

        Returns:
            AnalysisResponse with content and usage
        """
        try:
            kwargs = {
                "model": self.model,
                "max_tokens": max_tokens,
                "temperature": temperature,
                "messages": [{"role": "user", "content": prompt}],
            }

            if system:
                kwargs["system"] = system

            response = await self.async_client.messages.create(**kwargs)

            content = ""
            for block in response.content:
                if hasattr(block, "text"):
                    content += block.text

            usage = TokenUsage(
                input_tokens=response.usage.input_tokens,
                output_tokens=response.usage.output_tokens,
            )
            self.total_usage.input_tokens += usage.input_tokens
            self.total_usage.output_tokens += usage.output_tokens
            self.call_count += 1

            logger.info(
                f"Claude call: {usage.input_tokens} in, {usage.output_tokens} out, "
                f"${usage.estimated_cost:.4f}"
            )

            return AnalysisResponse(
                content=content,
                usage=usage,
                model=self.model,
                stop_reason=response.stop_reason,
            )

        except anthropic.APIError as e:
            logger.error(f"Claude API error: {e}")
            return AnalysisResponse(
                content="",
                usage=TokenUsage(),
                model=self.model,
                stop_reason="error",
                success=False,
                error=str(e),
            )

    async def complete(
        self,
        prompt: str,
        system: Optional[str] = None,
        timeout: float = 45,
        **kwargs,
    ) -> str:
        """
        Run analyze() under a time budget and return the text.

        Raises:
            LLMTimeoutError: if the call exceeds the timeout
            LLMError: if the API reported an error
        """
        try:
            response = await asyncio.wait_for(
                self.analyze(prompt, system, **kwargs),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            raise LLMTimeoutError(timeout)

        if not response.success:
            raise LLMError(response.error or "Claude API call failed")

        return response.content

    async def close(self):
        """Release the underlying HTTP connection pool."""
        await self.async_client.close()
        logger.info(f"Claude client closed: {self.get_usage_summary()}")

    def get_usage_summary(self) -> Dict[str, Any]:
        """Get summary of all API usage."""
        return {
            "total_calls": self.call_count,
            "input_tokens": self.total_usage.input_tokens,
            "output_tokens": self.total_usage.output_tokens,
            "total_tokens": self.total_usage.total_tokens,
            "estimated_cost": self.total_usage.estimated_cost,
        }


def create_llm_client(settings: Optional[Settings] = None) -> ClaudeClient:
    """
    Build a client from settings.

    Raises:
        ConfigurationError: if ANTHROPIC_API_KEY is not set
    """
    settings = settings or get_settings()
    if not settings.ANTHROPIC_API_KEY:
        logger.error("ANTHROPIC_API_KEY not configured")
        raise ConfigurationError("ANTHROPIC_API_KEY environment variable is required")
    return ClaudeClient(api_key=settings.ANTHROPIC_API_KEY, model=settings.CLAUDE_MODEL)
