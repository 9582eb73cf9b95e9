# Import providers so they register themselves.
from . import echo, gemini  # noqa: F401
