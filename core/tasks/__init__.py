# Import tasks so they register themselves.
from . import doc, e2e_test, module_review, pr_review, refactor, unit_test  # noqa: F401
