from core.registry import task_registry
from core.tasks.input_task import InputTask


@task_registry.register("module-review")
class ModuleReviewTask(InputTask):
    name = "module-review"
    description = "Review every file of a module or a single file."
    template = "module_review.j2"
    default_output = "module-review.md"
    environment_keys = ("REVIEW_FILES", "ADDITIONAL_INSTRUCTIONS", "OUTPUT_FILE")
    files_key = "review_files"
