"""
Defines custom exception classes for the application.
"""


class GeminiToolsException(Exception):
    """Base exception class for gemini-tools."""
    pass


class ConfigError(GeminiToolsException):
    """Raised when the configuration or environment is invalid."""
    pass


class OptionsError(GeminiToolsException):
    """Raised when command options fail validation."""
    pass


class GitError(GeminiToolsException):
    """Raised when the repository or a branch is not usable."""
    pass


class FileError(GeminiToolsException):
    """Raised when a required input path cannot be found or read."""
    pass


class ShellError(GeminiToolsException):
    """Raised when a shell command exits unsuccessfully."""

    def __init__(self, message: str, stderr: str = "", exit_code: int = -1):
        super().__init__(message)
        self.stderr = stderr
        self.exit_code = exit_code


class CollectorError(GeminiToolsException):
    """Raised when an error occurs during context collection."""
    pass


class ProviderError(GeminiToolsException):
    """Raised when the external AI tool fails or is unavailable."""
    pass


class PromptError(GeminiToolsException):
    """Raised when a prompt template cannot be rendered."""
    pass
