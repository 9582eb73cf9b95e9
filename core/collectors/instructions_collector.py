from typing import Any, Iterable, Mapping

from core.contracts.collector import Collector
from core.registry import collector_registry
from utils.logger import logger
from utils.prompt import process_additional_prompts


@collector_registry.register("instructions")
class InstructionsCollector(Collector):
    """Reads the additional prompt files passed with `--prompt`."""

    def __init__(self, prompt_files: Iterable[str] = ()):
        self.prompt_files = list(prompt_files)

    def collect(self) -> Mapping[str, Any]:
        instructions = process_additional_prompts(self.prompt_files)
        logger.info(f"Additional instructions: {len(instructions)} characters")
        return {"additional_instructions": instructions}
