import json
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class FileDiffInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    absolute_path: str = Field(alias="absolutePath")
    diff: str


class CommitInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    hash: str
    author: str
    date: str
    message: str


class TaskContext(BaseModel):
    """Everything the collectors gathered for one run of a task."""

    review_files: List[str] = []
    file_diffs: Dict[str, FileDiffInfo] = {}
    commits: List[CommitInfo] = []
    user_description: str = ""
    input_files: List[str] = []
    additional_instructions: str = ""
    output_file: str = ""

    def review_files_diff_json(self) -> str:
        """Serializes the diff map keyed by relative path."""
        return json.dumps(
            {path: info.model_dump(by_alias=True) for path, info in self.file_diffs.items()},
            ensure_ascii=False,
        )

    def to_environment(self, keys: Iterable[str]) -> Dict[str, str]:
        """
        Builds the environment variables a task exposes to the external tool.

        Args:
            keys: The variable names to include.
        """
        values = {
            "REVIEW_FILES": lambda: ",".join(self.review_files),
            "REVIEW_FILES_DIFF": self.review_files_diff_json,
            "USER_DESCRIPTION": lambda: self.user_description,
            "INPUT_FILES": lambda: ",".join(self.input_files),
            "ADDITIONAL_INSTRUCTIONS": lambda: self.additional_instructions,
            "OUTPUT_FILE": lambda: self.output_file,
        }
        return {key: values[key]() for key in keys}


class AIRequest(BaseModel):
    """A single call to the external AI tool."""

    model_config = ConfigDict(frozen=True)

    prompt: str
    model: Optional[str] = None
    environment: Dict[str, str] = {}
    cwd: Optional[str] = None


class TaskResult(BaseModel):
    output: str
    output_file: str
