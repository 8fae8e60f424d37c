"""
Stage Context

The collaborators every stage handler receives: state, notifications,
settings and a factory for the LLM client.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional

from contentflow.analyzer.client import ClaudeClient, create_llm_client
from contentflow.utils.config import Settings, get_settings
from contentflow.workflow.notify import Notifier
from contentflow.workflow.repository import ContentRepository

LLMFactory = Callable[[Settings], ClaudeClient]


@dataclass
class StageContext:
    """Shared dependencies for workflow stages."""
    repository: ContentRepository
    notifier: Notifier
    settings: Settings = field(default_factory=get_settings)
    llm_factory: LLMFactory = create_llm_client
    _llm_client: Optional[ClaudeClient] = field(default=None, init=False, repr=False)

    def llm(self) -> ClaudeClient:
        """
        The shared LLM client, built on first use.

        Raises:
            ConfigurationError: if the API key is missing
        """
        if self._llm_client is None:
            self._llm_client = self.llm_factory(self.settings)
        return self._llm_client

    async def aclose(self):
        """Close the shared LLM client, if one was built."""
        client, self._llm_client = self._llm_client, None
        if client is not None:
            await client.close()
