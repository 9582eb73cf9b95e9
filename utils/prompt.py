from typing import Iterable, List, Optional

from utils.errors import FileError
from utils.fs import file_exists, read_file
from utils.logger import logger

PROMPT_SEPARATOR = "\n\n"


def process_additional_prompts(prompt_files: Optional[Iterable[str]]) -> str:
    """
    Reads additional instruction files and joins their contents.

    Missing files are skipped with a warning and unreadable files are logged
    and skipped. Contents keep the input order, separated by a blank line.

    Args:
        prompt_files: Paths to the instruction files.

    Returns:
        The joined instructions, or an empty string if nothing was read.
    """
    contents: List[str] = []
    for prompt_file in prompt_files or []:
        if not file_exists(prompt_file):
            logger.warning(f"Prompt file does not exist: {prompt_file}")
            continue
        try:
            contents.append(read_file(prompt_file))
        except FileError as e:
            logger.error(f"Failed to read prompt file {prompt_file}: {e}")
            continue
        logger.info(f"Loaded prompt file: {prompt_file}")

    return PROMPT_SEPARATOR.join(contents)
