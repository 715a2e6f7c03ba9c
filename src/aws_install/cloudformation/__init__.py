"""
CloudFormation stack lifecycle utilities.
"""

from .change_set import ChangeSetOrchestrator
from .events import EventTailer, EventTailerHandle, TailerState
from .rollback import RollbackResolver
from .stack_manager import StackManager, get_bucket_name_for_stack, get_stack_outputs
from .status import StatusReporter
from .waiter import StackWaiter

__all__ = [
    "ChangeSetOrchestrator",
    "EventTailer",
    "EventTailerHandle",
    "RollbackResolver",
    "StackManager",
    "StackWaiter",
    "StatusReporter",
    "TailerState",
    "get_bucket_name_for_stack",
    "get_stack_outputs",
]
