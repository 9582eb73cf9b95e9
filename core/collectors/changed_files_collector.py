from typing import Any, Iterable, Mapping

from core.contracts.collector import Collector
from core.registry import collector_registry
from utils.git import get_changed_files
from utils.ignore import filter_ignored_files
from utils.logger import logger


@collector_registry.register("changed_files")
class ChangedFilesCollector(Collector):
    """
    Lists the files changed on the source branch relative to the target branch,
    minus ignored files.
    """

    def __init__(self, source_branch: str, target_branch: str, ignores: Iterable[str] = ()):
        self.source_branch = source_branch
        self.target_branch = target_branch
        self.ignores = list(ignores)

    def collect(self) -> Mapping[str, Any]:
        changed_files = get_changed_files(self.source_branch, self.target_branch)
        logger.info(f"Found {len(changed_files)} changed file(s)")

        review_files = filter_ignored_files(changed_files, self.ignores)
        logger.info(f"{len(review_files)} changed file(s) left after filtering")
        return {"review_files": review_files}
