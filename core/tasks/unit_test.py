from core.registry import task_registry
from core.tasks.input_task import InputTask


@task_registry.register("unit-test")
class UnitTestTask(InputTask):
    name = "unit-test"
    description = "Generate unit tests for a file or directory."
    template = "unit_test.j2"
    default_output = "unit-test.md"
    require_files = True
    fresh_output = True
