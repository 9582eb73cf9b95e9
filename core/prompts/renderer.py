import datetime
from pathlib import Path
from typing import Any, List, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

from core.contracts.models import TaskContext
from core.contracts.renderer import PromptRenderer
from utils.errors import PromptError

BUILTIN_TEMPLATE_DIR = Path(__file__).parent / "templates"


class Jinja2PromptRenderer(PromptRenderer):
    """
    Renders task prompts from Jinja2 templates.

    A custom template directory is searched before the built-in templates,
    so a project can override a single prompt.
    """

    def __init__(self, template_dir: Optional[str] = None):
        search_path: List[str] = []
        if template_dir:
            custom_dir = Path(template_dir).expanduser()
            if not custom_dir.is_dir():
                raise PromptError(f"Template directory not found: {template_dir}")
            search_path.append(str(custom_dir))
        search_path.append(str(BUILTIN_TEMPLATE_DIR))

        self.search_path = search_path
        self.env = Environment(
            loader=FileSystemLoader(search_path),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )

    def render(self, template_name: str, ctx: TaskContext, **extra: Any) -> str:
        try:
            template = self.env.get_template(template_name)
            return template.render(
                ctx=ctx,
                now=datetime.datetime.now,
                **extra,
            )
        except TemplateError as e:
            raise PromptError(f"Failed to render prompt template {template_name}: {e}") from e
