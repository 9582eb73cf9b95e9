from config.models import GeminiConfig
from core.contracts.models import AIRequest
from core.contracts.provider import AIProvider
from core.registry import provider_registry


@provider_registry.register("echo")
class EchoProvider(AIProvider):
    """Returns the rendered prompt instead of calling a model. Used for dry runs."""

    def __init__(self, config: GeminiConfig):
        self.config = config

    async def run(self, request: AIRequest) -> str:
        return request.prompt.strip()
