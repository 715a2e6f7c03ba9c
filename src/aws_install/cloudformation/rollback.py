"""
Recover from a stack left in ROLLBACK_COMPLETE by a failed first install.
"""

import logging
from typing import Any, Callable, Dict, Optional

from ..errors import RolledBackStackError
from .stack_manager import StackManager
from .status import ROLLED_BACK_STATUS, format_status
from .waiter import StackWaiter

logger = logging.getLogger(__name__)

CONFIRM_MESSAGE = "Stack is currently in rolled back state, delete before continuing?"

Confirm = Callable[[str], bool]


def deny(message: str) -> bool:
    return False


class RollbackResolver:
    """Delete a rolled back stack (with confirmation) so it can be recreated."""

    def __init__(
        self,
        manager: StackManager,
        waiter: StackWaiter,
        confirm: Optional[Confirm] = None,
        force: bool = False,
    ):
        self.manager = manager
        self.waiter = waiter
        self.confirm = confirm or deny
        self.force = force

    async def resolve(self, stack: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Return ``stack`` unchanged, or ``None`` once a rolled back stack is gone.

        A stack in ``ROLLBACK_COMPLETE`` cannot be updated; it must be deleted
        and created again.

        Raises:
            RolledBackStackError: the deletion was not confirmed
        """
        description = await self.manager.describe_stack(stack)
        if description["StackStatus"] != ROLLED_BACK_STATUS:
            return stack

        stack_name = description.get("StackName", stack.get("StackName", ""))
        logger.debug(f"Stack {stack_name} is {format_status(ROLLED_BACK_STATUS)}")

        if not (self.force or self.confirm(CONFIRM_MESSAGE)):
            raise RolledBackStackError(stack_name)

        await self.manager.delete_stack(stack)
        await self.waiter.wait_until_terminal(stack)
        return None
