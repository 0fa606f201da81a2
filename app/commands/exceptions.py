class CommandError(Exception):
    """Raised when an external command cannot be run or fails."""
