# Import collectors so they register themselves.
from . import (  # noqa: F401
    changed_files_collector,
    diff_collector,
    history_collector,
    input_files_collector,
    instructions_collector,
)
