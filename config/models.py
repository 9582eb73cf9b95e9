from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class GeminiConfig(BaseModel):
    provider: str = "gemini"
    binary: str = "gemini"
    model: str = Field("gemini-2.5-pro", min_length=1)
    api_key: Optional[str] = None
    timeout_sec: int = Field(600, gt=0, description="Timeout for one call to the external tool")
    yolo: bool = Field(True, description="Let the external tool run its own tools without confirmation")
    extra_args: List[str] = Field(default_factory=list)


class ShellConfig(BaseModel):
    timeout_sec: int = Field(10, gt=0, description="Timeout for git and other helper commands")


class PromptConfig(BaseModel):
    template_dir: Optional[str] = None
    templates: Dict[str, str] = Field(default_factory=dict, description="Template overrides keyed by task name")


class DefaultsConfig(BaseModel):
    target_branch: str = "main"
    ignores: List[str] = Field(default_factory=list)
    additional_prompts: List[str] = Field(default_factory=list)


class LogConfig(BaseModel):
    file: Optional[str] = None


class Config(BaseModel):
    gemini: GeminiConfig = Field(default_factory=GeminiConfig, description="External AI CLI settings")
    shell: ShellConfig = Field(default_factory=ShellConfig, description="Helper command settings")
    prompts: PromptConfig = Field(default_factory=PromptConfig, description="Prompt template settings")
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig, description="Defaults merged into command options")
    log: LogConfig = Field(default_factory=LogConfig, description="Logging settings")


class EnvSettings(BaseModel):
    """Environment variables read at startup."""

    GEMINI_API_KEY: str = Field(min_length=1)
    GEMINI_MODEL: Optional[str] = None

    @field_validator("GEMINI_API_KEY")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("GEMINI_API_KEY must not be blank")
        return value


class TaskOptions(BaseModel):
    """Options shared by every command. Immutable for one invocation."""

    model_config = ConfigDict(frozen=True)

    output: Optional[str] = None
    model: Optional[str] = None
    additional_prompts: Tuple[str, ...] = ()
    ignores: Tuple[str, ...] = ()


class ReviewOptions(TaskOptions):
    source_branch: str = Field(min_length=1)
    target_branch: str = Field(min_length=1)

    @model_validator(mode="after")
    def _branches_differ(self) -> "ReviewOptions":
        if self.source_branch == self.target_branch:
            raise ValueError("source and target branches must differ")
        return self


class InputOptions(TaskOptions):
    input: str = Field(min_length=1)
