import asyncio
from typing import List, Optional

from config.models import Config, ReviewOptions
from core.collectors.changed_files_collector import ChangedFilesCollector
from core.collectors.diff_collector import FileDiffCollector
from core.collectors.history_collector import HistoryCollector
from core.collectors.instructions_collector import InstructionsCollector
from core.contracts.collector import Collector
from core.pipeline import Task
from core.registry import task_registry
from utils.errors import GitError
from utils.git import ensure_git_repository, resolve_branch
from utils.logger import logger


@task_registry.register("pr-review")
class PrReviewTask(Task):
    """
    Reviews the changes a source branch would bring into a target branch.

    Exposes the changed files, their diffs, a description built from the
    branch's commits and any additional instructions to the external tool.
    """

    name = "pr-review"
    description = "Review the changes of a source branch against a target branch."
    options_model = ReviewOptions
    template = "pr_review.j2"
    default_output = "review.md"
    environment_keys = (
        "REVIEW_FILES",
        "REVIEW_FILES_DIFF",
        "USER_DESCRIPTION",
        "ADDITIONAL_INSTRUCTIONS",
        "OUTPUT_FILE",
    )

    options: ReviewOptions

    def __init__(self, options: ReviewOptions, config: Config, **kwargs):
        super().__init__(options, config, **kwargs)
        # Full refs resolved in prepare(), e.g. refs/remotes/origin/main
        self.source_ref: Optional[str] = None
        self.target_ref: Optional[str] = None

    async def prepare(self) -> None:
        """
        Raises:
            GitError: If this is not a git repository or a branch is missing.
        """
        ensure_git_repository()

        self.source_ref, self.target_ref = await asyncio.gather(
            asyncio.to_thread(resolve_branch, self.options.source_branch),
            asyncio.to_thread(resolve_branch, self.options.target_branch),
        )
        if self.source_ref is None:
            raise GitError(f"Source branch does not exist: {self.options.source_branch}")
        if self.target_ref is None:
            raise GitError(f"Target branch does not exist: {self.options.target_branch}")
        logger.info(f"Reviewing {self.source_ref} against {self.target_ref}")

    def build_collectors(self) -> List[Collector]:
        source, target = self.source_ref, self.target_ref
        return [
            ChangedFilesCollector(source, target, ignores=self.options.ignores),
            FileDiffCollector(source, target, ignores=self.options.ignores),
            HistoryCollector(source, target),
            InstructionsCollector(self.options.additional_prompts),
        ]
