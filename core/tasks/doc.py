from core.registry import task_registry
from core.tasks.input_task import InputTask


@task_registry.register("doc")
class DocTask(InputTask):
    name = "doc"
    description = "Generate documentation for a file or directory."
    template = "doc.j2"
    default_output = "doc.md"
