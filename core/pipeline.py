import asyncio
from pathlib import Path
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Tuple, Type

from config.models import Config, TaskOptions
from core.contracts.collector import Collector
from core.contracts.models import AIRequest, TaskContext, TaskResult
from core.contracts.provider import AIProvider
from core.contracts.renderer import PromptRenderer
from core.llm.router import get_provider
from core.prompts.renderer import Jinja2PromptRenderer
from utils.errors import CollectorError, GeminiToolsException
from utils.fs import file_exists, remove_file, write_file
from utils.logger import logger

SUMMARY_PREVIEW_CHARS = 100


class Task:
    """
    Base class for every command that hands work to the external AI tool.

    A run collects context concurrently, renders the prompt, builds one
    request and executes it through a provider. Subclasses declare the
    collectors, the template, the environment variables they expose and the
    default output file.
    """

    name: ClassVar[str]
    description: ClassVar[str] = ""
    options_model: ClassVar[Type[TaskOptions]] = TaskOptions
    template: ClassVar[str]
    default_output: ClassVar[str]
    environment_keys: ClassVar[Tuple[str, ...]] = ("ADDITIONAL_INSTRUCTIONS", "OUTPUT_FILE")
    # Remove an existing output file before the call so results are never stale.
    fresh_output: ClassVar[bool] = False

    def __init__(
        self,
        options: TaskOptions,
        config: Config,
        provider: Optional[AIProvider] = None,
        renderer: Optional[PromptRenderer] = None,
        dry_run: bool = False,
    ):
        """
        Args:
            options: The validated command options.
            config: The merged configuration.
            provider: Overrides the provider chosen from the config.
            renderer: Overrides the Jinja2 prompt renderer.
            dry_run: Render the prompt through the echo provider and leave files alone.
        """
        self.options = options
        self.config = config
        self.dry_run = dry_run
        self.provider = provider
        self.renderer = renderer or Jinja2PromptRenderer(config.prompts.template_dir)

    @property
    def model(self) -> str:
        return self.options.model or self.config.gemini.model

    @property
    def output_file(self) -> str:
        return str((Path.cwd() / (self.options.output or self.default_output)).resolve())

    @property
    def template_name(self) -> str:
        return self.config.prompts.templates.get(self.name, self.template)

    async def prepare(self) -> None:
        """Checks preconditions before any context is collected."""

    def build_collectors(self) -> List[Collector]:
        raise NotImplementedError

    def validate_context(self, context: TaskContext) -> None:
        """Rejects a collected context that cannot be worked on."""

    async def run(self) -> TaskResult:
        """
        Runs the task end to end.

        Returns:
            The tool's output and the output file path.
        """
        logger.info(f"Starting {self.name}...")
        await self.prepare()

        try:
            context_data = await self._collect_context()
        except GeminiToolsException as e:
            logger.error(f"Failed to collect context: {e}")
            raise
        context = self._aggregate_context(context_data)
        self.validate_context(context)

        if self.fresh_output and not self.dry_run and remove_file(context.output_file):
            logger.info(f"Removed previous output: {context.output_file}")

        request = self._build_request(context)
        self._log_environment_summary(request.environment)

        provider = self.provider or get_provider(self.config.gemini, name="echo" if self.dry_run else None)
        output = await provider.run(request)
        logger.debug(f"Output from the external tool:\n{output}")

        if not self.dry_run:
            self._finalize_output(context.output_file, output)
        logger.success(f"{self.name} completed")
        return TaskResult(output=output, output_file=context.output_file)

    async def _collect_context(self) -> Dict[str, Any]:
        """
        Runs all collectors concurrently and merges their results.
        """
        collectors = self.build_collectors()
        logger.info(f"Running {len(collectors)} collectors...")
        tasks = []
        for collector in collectors:
            if asyncio.iscoroutinefunction(collector.collect):
                tasks.append(asyncio.create_task(collector.collect()))
            else:
                tasks.append(asyncio.to_thread(collector.collect))

        try:
            results: List[Mapping[str, Any]] = await asyncio.gather(*tasks)
        except GeminiToolsException:
            raise
        except Exception as e:
            raise CollectorError(f"Context collection failed: {e}") from e

        combined_data: Dict[str, Any] = {}
        for data in results:
            combined_data.update(data)
        return combined_data

    def _aggregate_context(self, context_data: Dict[str, Any]) -> TaskContext:
        context = TaskContext(**context_data, output_file=self.output_file)
        logger.debug(f"Collected context fields: {sorted(context_data)}")
        return context

    def _build_request(self, context: TaskContext) -> AIRequest:
        environment = context.to_environment(self.environment_keys)
        prompt = self.renderer.render(self.template_name, context, task=self.name, environment=environment)
        logger.debug(f"Rendered prompt for {self.name}:\n{prompt}")
        return AIRequest(
            prompt=prompt,
            model=self.model,
            environment=environment,
            cwd=str(Path.cwd()),
        )

    def _log_environment_summary(self, environment: Mapping[str, str]) -> None:
        logger.debug("Environment summary:")
        for key, value in environment.items():
            preview = value if len(value) <= SUMMARY_PREVIEW_CHARS else f"{value[:SUMMARY_PREVIEW_CHARS]}..."
            logger.debug(f"{key}: {preview}")

    def _finalize_output(self, output_file: str, output: str) -> None:
        """Writes the tool's output unless the tool already created the file."""
        if file_exists(output_file):
            logger.info(f"Result written to: {output_file}")
            return
        if not output:
            logger.warning("The external tool returned no output and wrote no file.")
            return
        write_file(output_file, output + "\n")
