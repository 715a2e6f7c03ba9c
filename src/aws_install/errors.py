"""
Errors raised while installing or uninstalling a stack.

Remote failures (``botocore.exceptions.ClientError`` and friends) are not
wrapped; they propagate to the command line boundary unchanged.
"""


class InstallError(Exception):
    """Base class for install/uninstall failures."""


class ValidationError(InstallError):
    """The template was rejected by CloudFormation validation."""


class RolledBackStackError(InstallError):
    """The existing stack is rolled back and cleanup was declined."""

    def __init__(self, stack_name: str):
        self.stack_name = stack_name
        super().__init__("Cannot install with stack in rolled back state")


class ChangeSetFailedError(InstallError):
    """A change set with proposed changes ended in a failed status."""

    def __init__(self, reason: str, change_set_id: str = ""):
        self.reason = reason
        self.change_set_id = change_set_id
        super().__init__(reason)


class PostExecutionRollbackError(InstallError):
    """The stack converged to a rollback status after executing a change set."""

    def __init__(self, stack_name: str, status: str):
        self.stack_name = stack_name
        self.status = status
        super().__init__("An error occurred and your stack was rolled back")


class AssetPackagingError(InstallError):
    """A deployable code directory could not be packaged."""
