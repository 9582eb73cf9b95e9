from typing import ClassVar, List

from config.models import InputOptions
from core.collectors.input_files_collector import InputFilesCollector
from core.collectors.instructions_collector import InstructionsCollector
from core.contracts.collector import Collector
from core.contracts.models import TaskContext
from core.pipeline import Task
from utils.errors import FileError
from utils.fs import get_path_type


class InputTask(Task):
    """A task that works on the files under an input path."""

    options_model = InputOptions
    environment_keys = ("INPUT_FILES", "ADDITIONAL_INSTRUCTIONS", "OUTPUT_FILE")
    # The context field that receives the expanded file list.
    files_key: ClassVar[str] = "input_files"
    require_files: ClassVar[bool] = False

    options: InputOptions

    async def prepare(self) -> None:
        if get_path_type(self.options.input) == "nonexistent":
            raise FileError(f"Input path does not exist: {self.options.input}")

    def build_collectors(self) -> List[Collector]:
        return [
            InputFilesCollector(self.options.input, ignores=self.options.ignores, key=self.files_key),
            InstructionsCollector(self.options.additional_prompts),
        ]

    def validate_context(self, context: TaskContext) -> None:
        if self.require_files and not getattr(context, self.files_key):
            raise FileError("No files to process; check the input path and ignore patterns.")
