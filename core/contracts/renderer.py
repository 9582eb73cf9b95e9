from typing import Protocol

from .models import TaskContext


class PromptRenderer(Protocol):
    def render(self, template_name: str, ctx: TaskContext, **extra) -> str:
        ...
