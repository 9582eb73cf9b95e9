from typing import Protocol

from .models import AIRequest


class AIProvider(Protocol):
    """A protocol for backends that execute an AI request."""

    async def run(self, request: AIRequest) -> str:
        """
        Executes the request.

        Args:
            request: The prompt, model and environment for the call.

        Returns:
            The tool's response text, trimmed.
        """
        ...
