import asyncio
import os
from typing import Dict, List, Optional

from config.models import GeminiConfig
from core.contracts.models import AIRequest
from core.contracts.provider import AIProvider
from core.registry import provider_registry
from utils.errors import ProviderError
from utils.logger import logger
from utils.shell import execute

VERSION_CHECK_TIMEOUT_SEC = 30


@provider_registry.register("gemini")
class GeminiCLIProvider(AIProvider):
    """
    Runs the Gemini CLI as a subprocess.

    The prompt is written to the CLI's stdin and the request environment is
    layered over ours for the child process only. There is a single attempt;
    a non-zero exit surfaces the captured stderr.
    """

    def __init__(self, config: GeminiConfig):
        self.config = config
        self._available: Optional[bool] = None

    def check_availability(self) -> str:
        """
        Probes the binary with `--version`.

        Returns:
            The reported version string.

        Raises:
            ProviderError: If the binary is missing or the version check fails.
        """
        result = execute([self.config.binary, "--version"], timeout=VERSION_CHECK_TIMEOUT_SEC)
        if not result.success:
            self._available = False
            raise ProviderError(
                f"Gemini CLI is not available (`{self.config.binary} --version` failed): "
                f"{result.stderr.strip() or 'no output'}. "
                "Install it with `npm install -g @google/gemini-cli`."
            )
        self._available = True
        version = result.stdout.strip()
        logger.debug(f"Gemini CLI version: {version}")
        return version

    def build_command(self, model: Optional[str] = None) -> List[str]:
        command = [self.config.binary, "-m", model or self.config.model]
        if self.config.yolo:
            command.append("--yolo")
        command.extend(self.config.extra_args)
        return command

    def build_environment(self, request: AIRequest) -> Dict[str, str]:
        env = dict(os.environ)
        env.update(request.environment)
        if self.config.api_key:
            env["GEMINI_API_KEY"] = self.config.api_key
        env["GEMINI_MODEL"] = request.model or self.config.model
        return env

    async def run(self, request: AIRequest) -> str:
        if self._available is None:
            await asyncio.to_thread(self.check_availability)

        command = self.build_command(request.model)
        logger.info(f"Running Gemini CLI with model '{request.model or self.config.model}'...")
        result = await asyncio.to_thread(
            execute,
            command,
            cwd=request.cwd,
            env=self.build_environment(request),
            input=request.prompt,
            timeout=self.config.timeout_sec,
        )

        if not result.success:
            raise ProviderError(
                f"Gemini CLI exited with code {result.exit_code}: {result.stderr.strip() or 'no error output'}"
            )
        return result.stdout.strip()
