from core.registry import task_registry
from core.tasks.input_task import InputTask


@task_registry.register("refactor")
class RefactorTask(InputTask):
    name = "refactor"
    description = "Propose behavior-preserving refactorings for a file or directory."
    template = "refactor.j2"
    default_output = "refactor.md"
