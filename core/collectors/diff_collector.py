from typing import Any, Iterable, Mapping

from core.contracts.collector import Collector
from core.registry import collector_registry
from utils.git import get_all_file_diffs, get_changed_files
from utils.ignore import filter_ignored_files
from utils.logger import logger


@collector_registry.register("file_diffs")
class FileDiffCollector(Collector):
    """
    Retrieves the per-file diffs between two branches, keyed by relative path.
    """

    def __init__(self, source_branch: str, target_branch: str, ignores: Iterable[str] = ()):
        self.source_branch = source_branch
        self.target_branch = target_branch
        self.ignores = list(ignores)

    def collect(self) -> Mapping[str, Any]:
        """
        Runs `git diff target..source -- <file>` for every changed file that
        is not ignored.

        Returns:
            A mapping with the diffs under "file_diffs".
        """
        changed_files = filter_ignored_files(
            get_changed_files(self.source_branch, self.target_branch), self.ignores
        )
        diffs = get_all_file_diffs(self.source_branch, self.target_branch, changed_files=changed_files)

        total = sum(len(info.diff) for info in diffs.values())
        logger.info(f"Collected diffs for {len(diffs)} file(s), {total} characters")
        return {"file_diffs": diffs}
