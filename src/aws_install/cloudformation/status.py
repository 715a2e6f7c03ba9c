"""
CloudFormation status helpers and progress de-duplication.
"""

from typing import Optional, Set

from ..progress import ProgressLogger

COMPLETE_SUFFIX = "_COMPLETE"
ROLLED_BACK_STATUS = "ROLLBACK_COMPLETE"

# Statuses of stacks that still exist (DELETE_COMPLETE and the failed states
# are excluded, so a fresh install may reuse the name)
ACTIVE_STATUSES = [
    "CREATE_IN_PROGRESS",
    "CREATE_COMPLETE",
    "ROLLBACK_IN_PROGRESS",
    "DELETE_IN_PROGRESS",
    "UPDATE_IN_PROGRESS",
    "UPDATE_COMPLETE_CLEANUP_IN_PROGRESS",
    "UPDATE_COMPLETE",
    "UPDATE_ROLLBACK_IN_PROGRESS",
    "UPDATE_ROLLBACK_COMPLETE_CLEANUP_IN_PROGRESS",
    "UPDATE_ROLLBACK_COMPLETE",
    "ROLLBACK_COMPLETE",
    "REVIEW_IN_PROGRESS",
]


def format_status(status: str) -> str:
    """Turn ``UPDATE_COMPLETE_CLEANUP_IN_PROGRESS`` into readable text."""
    label = status.lower().replace("_", " ")
    return label[:1].upper() + label[1:]


def is_terminal(status: str) -> bool:
    """Any ``*_COMPLETE`` status, successful or not."""
    return status.endswith(COMPLETE_SUFFIX)


def is_rollback(status: str) -> bool:
    return "ROLLBACK" in status


def is_in_progress(status: str) -> bool:
    return format_status(status).lower().endswith("in progress")


class StatusReporter:
    """Report each distinct status once.

    A status equal to the previous one is skipped. An "in progress" status is
    shown the first time only, even when other statuses come in between.
    One reporter is created per wait operation.
    """

    def __init__(self, logger: ProgressLogger):
        self.logger = logger
        self.last_status: Optional[str] = None
        self.shown_in_progress: Set[str] = set()

    def report(self, status: str) -> bool:
        """Report a polled status. Returns True when a line was emitted."""
        emitted = False
        if status != self.last_status:
            if not is_in_progress(status):
                emitted = True
            elif status not in self.shown_in_progress:
                self.shown_in_progress.add(status)
                emitted = True
        if emitted:
            self.logger.info(format_status(status))
        self.last_status = status
        return emitted
