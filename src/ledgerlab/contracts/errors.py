"""Error taxonomy for provisioning and launch.

Fatal errors (ProvisionError, TopologyValidationError) abort the run before
any process starts. LaunchError and SessionTeardownError are isolated to a
single window or to the stale-session cleanup and never stop the run.
"""


class ConfigWriteError(Exception):
    """Raised when a structured config file cannot be patched.

    The target file is left untouched when this is raised.
    """

    def __init__(self, path: object, reason: str) -> None:
        super().__init__(f"Cannot patch {path}: {reason}")
        self.path = path
        self.reason = reason


class ProvisionError(Exception):
    """Raised when node initialization or override application fails.

    root_dir is set once a root directory has been chosen, so the operator
    can find (and remove) a half-provisioned root.
    """

    def __init__(self, message: str, root_dir: object = None) -> None:
        super().__init__(message)
        self.root_dir = root_dir


class TopologyValidationError(Exception):
    """Raised when a topology has collisions or dangling references."""

    pass


class LaunchError(Exception):
    """Raised when a single process or window fails to start."""

    pass


class SessionTeardownError(Exception):
    """Raised when a pre-existing session cannot be killed."""

    pass
