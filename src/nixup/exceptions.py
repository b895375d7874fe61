"""nixup exception hierarchy.

All nixup-specific exceptions inherit from NixupError.
"""


class NixupError(Exception):
    """Base exception for all nixup errors."""


class ConfigError(NixupError):
    """Raised when the configuration file or overrides are invalid."""


class WorkdirError(NixupError):
    """Raised when a command's working directory cannot be entered."""

    def __init__(self, path: str, reason: str = "") -> None:
        self.path = path
        self.reason = reason
        message = f"Failed to change directory to {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class InputClosedError(NixupError):
    """Raised when standard input ends while a prompt is waiting for an answer."""

    def __init__(self, question: str) -> None:
        self.question = question
        super().__init__(f"No answer received for: {question}")
