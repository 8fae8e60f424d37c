"""
Analyzer Module

Claude-powered content analysis and rewriting:
- client: async Claude client with timeout-bounded completion
- prompts: analysis and improvement prompt templates
- parser: JSON extraction with deterministic fallback
"""

from .client import (
    ClaudeClient,
    AnalysisResponse,
    TokenUsage,
    LLMError,
    LLMTimeoutError,
    create_llm_client,
)
from .parser import (
    parse_analysis,
    normalize_analysis,
    fallback_analysis,
    strip_code_fences,
)
from .prompts import (
    ANALYSIS_SYSTEM_PROMPT,
    IMPROVEMENT_SYSTEM_PROMPT,
    build_analysis_prompt,
    build_improvement_prompt,
)

__all__ = [
    "ClaudeClient",
    "AnalysisResponse",
    "TokenUsage",
    "LLMError",
    "LLMTimeoutError",
    "create_llm_client",
    "parse_analysis",
    "normalize_analysis",
    "fallback_analysis",
    "strip_code_fences",
    "ANALYSIS_SYSTEM_PROMPT",
    "IMPROVEMENT_SYSTEM_PROMPT",
    "build_analysis_prompt",
    "build_improvement_prompt",
]
