"""
Kubetask errors.
"""


class KubetaskError(Exception):
    """Base exception for all Kubetask errors."""
    pass


class ConfigurationError(KubetaskError):
    """Malformed task, selector or condition."""
    pass


class InvalidRunError(ConfigurationError):
    """Run inputs are missing or empty (run, watch, tasks)."""
    pass


class DuplicateTaskKeyError(KubetaskError):
    """A task key was used more than once in a single Run."""

    def __init__(self, key: str):
        super().__init__(f'Duplicate task key "{key}"')
        self.key = key


class EvaluationError(KubetaskError):
    """Errors while matching or counting resources."""
    pass


class MergeError(KubetaskError):
    """Errors raised by the merge collaborator.

    Attributes:
        identity: Identity of the resource that could not be merged
    """

    def __init__(self, message: str, identity=None):
        super().__init__(message)
        self.identity = identity
