from typing import Any, Iterable, List, Mapping

from core.contracts.collector import Collector
from core.registry import collector_registry
from utils.errors import FileError
from utils.fs import get_path_type, get_relative_path, read_directory_files
from utils.ignore import filter_ignored_files, is_file_ignored
from utils.logger import logger


@collector_registry.register("input_files")
class InputFilesCollector(Collector):
    """
    Expands an input path (a file or a directory) into a list of files.

    Args:
        input_path: The file or directory given on the command line.
        ignores: Glob patterns for files to leave out.
        key: The context field the file list is stored under.
    """

    def __init__(self, input_path: str, ignores: Iterable[str] = (), key: str = "input_files"):
        self.input_path = input_path
        self.ignores = list(ignores)
        self.key = key

    def _expand(self) -> List[str]:
        path_type = get_path_type(self.input_path)
        if path_type == "file":
            relative_path = get_relative_path(self.input_path)
            if is_file_ignored(relative_path, self.ignores):
                logger.warning(f"Input file is ignored: {relative_path}")
                return []
            return [relative_path]
        if path_type == "directory":
            files = read_directory_files(self.input_path, self.ignores)
            logger.info(f"Found {len(files)} file(s) in directory {self.input_path}")
            return files
        raise FileError(f"Input path does not exist: {self.input_path}")

    def collect(self) -> Mapping[str, Any]:
        files = list(dict.fromkeys(self._expand()))
        files = filter_ignored_files(files, self.ignores)
        logger.info(f"{len(files)} input file(s) left after filtering")
        return {self.key: files}
