"""Exceptions raised across the public boundary of codeact."""


class CodeActError(Exception):
    """Base class for codeact errors."""


class ConfigurationError(CodeActError):
    """Raised at construction time when a required setting is missing or invalid.

    Examples are an unset API key or an unavailable sandbox runtime.
    """


class InvalidTransitionError(CodeActError):
    """Raised when a task is moved to a status that its current status cannot reach."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Invalid task transition: {current} -> {target}")
