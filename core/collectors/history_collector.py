from typing import Any, List, Mapping

from core.contracts.collector import Collector
from core.contracts.models import CommitInfo
from core.registry import collector_registry
from utils.git import get_commits_between_branches
from utils.logger import logger

NO_COMMITS_DESCRIPTION = "No commit information found"


def build_user_description(commits: List[CommitInfo]) -> str:
    """
    Describes a pull request from its commits (newest first).

    The newest commit supplies the message, author and date; the commit
    count is appended when there is more than one.
    """
    if not commits:
        return NO_COMMITS_DESCRIPTION

    latest = commits[0]
    description = f"{latest.message}\n\nAuthor: {latest.author}\nDate: {latest.date}"
    if len(commits) > 1:
        description += f"\n\nThis PR contains {len(commits)} commits"
    return description


@collector_registry.register("history")
class HistoryCollector(Collector):
    """
    A collector that retrieves the commits on the source branch that are not
    on the target branch.
    """

    def __init__(self, source_branch: str, target_branch: str):
        self.source_branch = source_branch
        self.target_branch = target_branch

    def collect(self) -> Mapping[str, Any]:
        """
        Executes `git log target..source` and builds the user description.

        Returns:
            A mapping with "commits" and "user_description".
        """
        commits = get_commits_between_branches(self.source_branch, self.target_branch)
        logger.info(f"Found {len(commits)} commit(s) between {self.target_branch} and {self.source_branch}")
        return {
            "commits": commits,
            "user_description": build_user_description(commits),
        }
